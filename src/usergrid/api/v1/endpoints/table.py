"""API endpoints for table operations."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from usergrid.core.dependencies import get_table_controller
from usergrid.core.errors import InvariantViolation, RemoteError, TableError, ValidationError
from usergrid.schemas.table_api import DraftUpdate, TableViewResponse
from usergrid.services.table_controller import TableController

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


def _http_error(error: TableError) -> HTTPException:
    """Translate a table error into an HTTP error carrying its message."""
    if isinstance(error, ValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, InvariantViolation):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(error, RemoteError):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=status_code, detail=error.message)


def _view(controller: TableController) -> TableViewResponse:
    return TableViewResponse(**controller.snapshot().model_dump())


@router.get(
    "/",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Get the table view",
    description="Get the rows, the open draft and the undo/redo state.",
)
async def get_table(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Get the table view."""
    return _view(controller)


@router.post(
    "/reload",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Reload rows from the remote store",
)
async def reload_table(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Reload rows from the remote store."""
    try:
        await controller.load()
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.post(
    "/draft",
    response_model=TableViewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new draft row",
)
async def open_draft(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Open a new draft row."""
    try:
        controller.open_draft()
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.patch(
    "/draft",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Update fields of the open draft",
)
async def update_draft(
    draft_update: DraftUpdate,
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Update fields of the open draft."""
    try:
        controller.update_draft(draft_update.fields())
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.delete(
    "/draft",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel the open draft",
)
async def cancel_draft(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Cancel the open draft."""
    try:
        controller.cancel_draft()
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.post(
    "/draft/submit",
    response_model=TableViewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save the open draft",
    description="Validate the draft and create it in the remote store.",
)
async def submit_draft(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Save the open draft."""
    try:
        row = await controller.submit_draft()
    except TableError as e:
        raise _http_error(e)
    logger.info(f"Draft saved as user {row.id}")
    return _view(controller)


@router.post(
    "/rows/{row_id}/delete",
    response_model=TableViewResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request deletion of a row",
    description="Mark the row as pending deletion until it is confirmed or cancelled.",
)
async def request_delete(
    row_id: str = Path(..., description="The ID of the row to delete"),
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Request deletion of a row."""
    try:
        controller.request_delete(row_id)
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.post(
    "/rows/{row_id}/delete/confirm",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Confirm deletion of a row",
)
async def confirm_delete(
    row_id: str = Path(..., description="The ID of the row to delete"),
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Confirm deletion of a row."""
    try:
        await controller.confirm_delete(row_id)
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.post(
    "/rows/{row_id}/delete/cancel",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel deletion of a row",
)
async def cancel_delete(
    row_id: str = Path(..., description="The ID of the row that was pending deletion"),
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Cancel deletion of a row."""
    controller.dismiss_delete(row_id)
    return _view(controller)


@router.post(
    "/undo",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Undo the latest action",
)
async def undo(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Undo the latest action."""
    try:
        await controller.undo()
    except TableError as e:
        raise _http_error(e)
    return _view(controller)


@router.post(
    "/redo",
    response_model=TableViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Redo the latest undone action",
)
async def redo(
    controller: TableController = Depends(get_table_controller),
) -> TableViewResponse:
    """Redo the latest undone action."""
    try:
        await controller.redo()
    except TableError as e:
        raise _http_error(e)
    return _view(controller)
