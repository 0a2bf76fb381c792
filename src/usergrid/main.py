"""Main module for the User Grid API service."""

import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from usergrid.api.v1.api import api_router
from usergrid.core.config import Settings, get_settings
from usergrid.core.errors import RemoteError
from usergrid.services.remote_store.factory import RemoteStoreFactory
from usergrid.services.table_controller import TableController

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.project_name,
    openapi_url=f"{settings.api_v1_str}/openapi.json",
    redirect_slashes=False,  # Disable automatic redirects for trailing slashes
)

# Configure CORS with specific settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

# Include the API router
app.include_router(api_router, prefix=settings.api_v1_str)


@app.on_event("startup")
async def startup_event():
    """Create the remote store and load the initial rows."""
    logger.info("Initializing application services...")

    store = RemoteStoreFactory.create_store(settings)
    if store is None:
        logger.error(f"Failed to create remote store for provider: {settings.remote_store_provider}")
        app.state.services_initialized = False
        return

    app.state.remote_store = store
    app.state.table_controller = TableController.from_settings(store, settings)

    try:
        await app.state.table_controller.load()
    except RemoteError as e:
        # The table view reports the load error; POST /table/reload retries it.
        logger.error(f"Initial load failed: {e.cause}")

    app.state.services_initialized = True
    logger.info("All application services initialized successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the remote store connection."""
    store = getattr(app.state, "remote_store", None)
    if store is not None:
        await store.aclose()
        logger.info("Remote store connection closed")


@app.get("/ping")
async def pong(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Ping the API to check if it's running."""
    return {
        "ping": "pong!",
        "environment": settings.environment,
        "testing": settings.testing,
    }
