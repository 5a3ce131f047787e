"""FastAPI server exposing usage, history and version state to the frontend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ccstats.api.routes import router
from ccstats.credentials.store import CredentialStore
from ccstats.history.store import HistoryStore
from ccstats.local_stats.reader import LocalStatsReader
from ccstats.status.service import StatusClient
from ccstats.version.checker import UpdateChecker
from ccstats.version.service import VersionService
from ccstats.web_session.client import WebSessionClient
from ccstats.web_session.poller import UsagePoller

logger = logging.getLogger(__name__)


def init_components(app: FastAPI) -> None:
    """Construct one instance of each component and hang it on app.state."""
    credentials = CredentialStore()
    app.state.credentials = credentials

    history = HistoryStore()
    app.state.history = history
    logger.info("Usage history loaded: %d snapshots from %s", len(history), history.path)

    web_client = WebSessionClient(credentials)
    app.state.web_client = web_client

    app.state.usage_poller = UsagePoller(
        client=web_client,
        history=history,
        status_client=StatusClient(),
    )
    app.state.update_checker = UpdateChecker(VersionService(), preferences=credentials)
    app.state.local_stats = LocalStatsReader()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire components and start both periodic triggers."""
    init_components(app)

    poller = app.state.usage_poller
    checker = app.state.update_checker
    try:
        poller.start()
    except Exception:
        logger.exception("Usage poller failed to start")
    try:
        checker.start()
    except Exception:
        logger.exception("Update checker failed to start")

    yield

    # Shutdown
    await poller.stop()
    await checker.stop()


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="ccstats - Claude usage tracker",
        version="0.1.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")
    return app
