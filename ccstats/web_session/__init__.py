from ccstats.web_session.client import (
    ChallengeBlockedError,
    DecodingError,
    InvalidResponseError,
    NetworkError,
    NoCredentialError,
    NoOrganizationError,
    UnauthorizedError,
    WebSessionClient,
    WebSessionError,
)
from ccstats.web_session.models import UsageData

# UsagePoller lives in ccstats.web_session.poller; it depends on the history
# package, which in turn imports the models above.

__all__ = [
    "ChallengeBlockedError",
    "DecodingError",
    "InvalidResponseError",
    "NetworkError",
    "NoCredentialError",
    "NoOrganizationError",
    "UnauthorizedError",
    "UsageData",
    "WebSessionClient",
    "WebSessionError",
]
