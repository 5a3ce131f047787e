"""Status page client."""

from .service import ServiceStatus, StatusClient, StatusError, StatusIndicator

__all__ = ["ServiceStatus", "StatusClient", "StatusError", "StatusIndicator"]
