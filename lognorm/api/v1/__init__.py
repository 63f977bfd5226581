"""API v1 router."""

from fastapi import APIRouter

from lognorm.api.v1 import logtypes

router = APIRouter()

router.include_router(logtypes.router, prefix="/logtypes", tags=["Log Types"])
