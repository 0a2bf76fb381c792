"""Dependencies for the application using FastAPI app state for singletons."""

import logging

from fastapi import Request

from usergrid.services.table_controller import TableController

logger = logging.getLogger(__name__)


def get_table_controller(request: Request) -> TableController:
    """Get the table controller from application state."""
    if not hasattr(request.app.state, "table_controller"):
        raise ValueError("Table controller not initialized in application state")

    return request.app.state.table_controller
