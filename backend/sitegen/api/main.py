from fastapi import APIRouter

from sitegen.api.routes import pipeline, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(pipeline.router, tags=["pipeline"])
