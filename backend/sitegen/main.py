import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sitegen.agent.validation import format_request_errors, summarize_errors
from sitegen.api.main import api_router
from sitegen.core.config import settings
from sitegen.utils import utc_now_iso

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_request_errors(exc.errors())
    logger.info("Rejected %s %s: %s", request.method, request.url.path, summarize_errors(errors))
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "error_phase": "validation",
            "error_message": summarize_errors(errors),
            "validation_errors": [err.model_dump() for err in errors],
            "generated_at": utc_now_iso(),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error_phase": "unknown",
            "error_message": str(exc) or exc.__class__.__name__,
            "generated_at": utc_now_iso(),
        },
    )


app.include_router(api_router, prefix=settings.API_V1_STR)
