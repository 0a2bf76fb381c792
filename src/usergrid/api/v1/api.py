"""API for the User Grid."""

from fastapi import APIRouter

from usergrid.api.v1.endpoints import table

api_router = APIRouter()
api_router.include_router(table.router, prefix="/table", tags=["table"])
