"""
HTTP surface of the relayer.

A single relay endpoint plus a health route, served by FastAPI.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import RelayerConfig
from .relay_router import RelayRouter

logger = logging.getLogger(__name__)


def create_app(config: RelayerConfig | None = None, router: RelayRouter | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Relayer configuration (loaded from the environment if omitted)
        router: Pre-built router, mainly for tests

    Raises:
        ValueError: If configuration is missing or invalid
    """
    if router is None:
        router = RelayRouter.from_config(config or RelayerConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Relayer account: {router.context.address}")
        yield
        # Let in-flight indexer posts finish before shutting down
        if router.forwarder.pending:
            logger.info(f"Waiting for {router.forwarder.pending} notification(s)...")
        await router.forwarder.drain()

    app = FastAPI(title="Sloth Relayer API", lifespan=lifespan)
    app.state.router = router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def status():
        return {"status": "success", "message": "Sloth Relayer API is running"}

    @app.post("/api/relay")
    async def relay(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        response = await app.state.router.relay(body)
        return JSONResponse(status_code=response.status_code, content=response.body)

    return app
