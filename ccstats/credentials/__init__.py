from ccstats.credentials.store import CredentialStore

__all__ = ["CredentialStore"]
