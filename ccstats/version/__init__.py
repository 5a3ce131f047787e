"""Installed and latest CLI versions, and the update checker."""

from .checker import UpdateChecker, is_version_newer
from .service import VersionError, VersionService

__all__ = ["UpdateChecker", "VersionError", "VersionService", "is_version_newer"]
