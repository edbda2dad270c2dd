"""FastAPI application factory.

The registry is stored on ``app.state``. The lifespan starts the
maintenance loops, and on shutdown drains them before closing the
registry, so no loop touches a disposed database.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request

from .. import __version__
from ..lifecycle import BackgroundLoops, maintenance_jobs
from ..registry import Registry, close_registry

logger = logging.getLogger(__name__)


def create_app(
    registry: Registry,
    *,
    run_background_loops: bool = True,
    close_registry_on_shutdown: bool = True,
    loop_interval_override: float | None = None,
) -> FastAPI:
    """Initialise the FastAPI application around an already booted registry."""

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        loops: BackgroundLoops | None = None
        if run_background_loops:
            loops = BackgroundLoops(maintenance_jobs(registry), interval_override=loop_interval_override)
            loops.start()
        app.state.background_loops = loops
        try:
            yield
        finally:
            if loops is not None:
                await loops.stop()
            app.state.background_loops = None
            if close_registry_on_shutdown:
                close_registry(registry)
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=registry.config.app.name or "webscaffold",
        version=__version__,
        debug=registry.config.app.debug,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.config = registry.config
    app.state.background_loops = None

    @app.get("/healthz")
    async def healthz(request: Request) -> dict[str, Any]:
        current: Registry = request.app.state.registry
        return {
            "status": "ok",
            "env": current.config.app.env,
            "stores": [store_id.value for store_id in current.enabled_stores],
        }

    return app


__all__ = ["create_app"]
