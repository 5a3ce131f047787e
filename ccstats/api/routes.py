"""JSON routes for the frontend.

Endpoints:
  GET    /api/usage              — last known usage, error and status
  POST   /api/usage/refresh      — fetch now (force) or only if stale
  GET    /api/history            — raw snapshot log
  GET    /api/history/sessions   — reconstructed session summaries
  GET    /api/status             — service status indicator
  GET    /api/version            — update checker state
  POST   /api/version/check      — run a (throttled) update check
  POST   /api/version/dismiss    — hide the banner for the current latest
  GET    /api/local-stats        — stats-cache.json rollup
  POST   /api/session            — store session key / cookies
  DELETE /api/session            — log out
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from ccstats.formatting import clamp_utilization, reset_time_text, usage_level
from ccstats.local_stats.reader import LocalStatsError

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionCredentials(BaseModel):
    session_key: str = ""
    full_cookies: str = ""
    organization_id: str = ""


# ── Usage ────────────────────────────────────────────────────────────────────


def _window(usage: float, resets_at: Any) -> dict[str, Any]:
    clamped = clamp_utilization(usage)
    return {
        "utilization": clamped,
        "level": usage_level(clamped),
        "resets_at": resets_at.isoformat() if resets_at else None,
        "reset_text": reset_time_text(resets_at) if resets_at else None,
    }


@router.get("/usage")
def get_usage(request: Request) -> dict[str, Any]:
    state = request.app.state.usage_poller.state
    data = state.to_dict()
    usage = state.usage
    data["windows"] = None
    if usage is not None:
        data["windows"] = {
            "session": _window(usage.session_usage, usage.session_resets_at),
            "weekly": _window(usage.weekly_usage, usage.weekly_resets_at),
            "sonnet": _window(usage.sonnet_usage, usage.sonnet_resets_at)
            if usage.sonnet_usage is not None else None,
            "opus": _window(usage.opus_usage, usage.opus_resets_at)
            if usage.opus_usage is not None else None,
        }
    return data


@router.post("/usage/refresh")
async def refresh_usage(request: Request, force: bool = True) -> dict[str, Any]:
    poller = request.app.state.usage_poller
    if force:
        await poller.refresh()
    else:
        await poller.refresh_if_needed()
    return get_usage(request)


# ── History ──────────────────────────────────────────────────────────────────


@router.get("/history")
def get_history(request: Request) -> dict[str, Any]:
    snapshots = request.app.state.history.load_history()
    return {
        "count": len(snapshots),
        "snapshots": [s.to_json_dict() for s in snapshots],
    }


@router.get("/history/sessions")
def get_sessions(request: Request, limit: int = 30) -> dict[str, Any]:
    """Most recent ``limit`` sessions, oldest first."""
    summaries = request.app.state.history.load_session_summaries()
    if limit > 0:
        summaries = summaries[-limit:]
    return {"sessions": [s.to_dict() for s in summaries]}


# ── Status / version ─────────────────────────────────────────────────────────


@router.get("/status")
def get_status(request: Request) -> dict[str, Any]:
    status = request.app.state.usage_poller.state.status
    if status is None:
        return {"indicator": "unknown", "description": "", "text": "Status"}
    return {
        "indicator": status.indicator,
        "description": status.description,
        "text": status.display_text,
    }


@router.get("/version")
def get_version(request: Request) -> dict[str, Any]:
    return request.app.state.update_checker.to_dict()


@router.post("/version/check")
async def check_version(request: Request) -> dict[str, Any]:
    checker = request.app.state.update_checker
    ran = await checker.check_for_update()
    return {"checked": ran, **checker.to_dict()}


@router.post("/version/dismiss")
def dismiss_version(request: Request) -> dict[str, Any]:
    checker = request.app.state.update_checker
    checker.dismiss()
    return checker.to_dict()


# ── Local stats ──────────────────────────────────────────────────────────────


@router.get("/local-stats")
def get_local_stats(request: Request) -> dict[str, Any]:
    try:
        return request.app.state.local_stats.read().to_dict()
    except LocalStatsError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Session credentials ──────────────────────────────────────────────────────


@router.post("/session")
def set_session(request: Request, body: SessionCredentials) -> dict[str, Any]:
    if not body.session_key and not body.full_cookies:
        raise HTTPException(status_code=400, detail="session_key or full_cookies required")
    credentials = request.app.state.credentials
    request.app.state.web_client.clear_organization()
    credentials.session_key = body.session_key or None
    credentials.full_cookies = body.full_cookies or None
    credentials.organization_id = body.organization_id or None
    return {"status": "saved", "has_session_key": credentials.has_session_key}


@router.delete("/session")
def clear_session(request: Request) -> dict[str, str]:
    request.app.state.credentials.clear_session()
    request.app.state.web_client.clear_organization()
    return {"status": "logged out"}
