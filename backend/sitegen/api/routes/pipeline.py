import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from sitegen.agent.artifacts import PipelineResult
from sitegen.agent.orchestrator import PipelineOptions, generate_specification, run_pipeline, run_pipeline_generator
from sitegen.agent.validation import summarize_errors, validate_business_input
from sitegen.core.config import settings
from sitegen.storage import SiteStorage, get_site_storage
from sitegen.utils import (
    generate_run_id,
    is_safe_path_segment,
    local_output_path,
    render_task_file,
    slugify,
    task_file_path,
    utc_now_iso,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class UploadRequest(BaseModel):
    run_id: str
    business_slug: str


def _result_response(result: PipelineResult) -> JSONResponse:
    status_code = 200 if result.status == "success" else 400
    return JSONResponse(status_code=status_code, content=result.to_response())


def _error_response(status_code: int, run_id: str, phase: str, message: str, **extra: Any) -> JSONResponse:
    result = PipelineResult(
        status="error",
        run_id=run_id,
        error_phase=phase,
        error_message=message,
        generated_at=utc_now_iso(),
    )
    return JSONResponse(status_code=status_code, content={**result.to_response(), **extra})


@router.post("/generate")
async def generate_website(
    payload: Any = Body(default=None),
    mock: bool = False,
    skip_upload: bool = False,
    save_local: bool = False,
    storage: SiteStorage = Depends(get_site_storage),
):
    """Run the full pipeline and return its result: 200 on success, 400 on a tagged failure."""
    options = PipelineOptions(
        use_mock=mock,
        skip_upload=skip_upload,
        output_dir=settings.OUTPUT_ROOT if save_local else None,
    )
    result = await run_pipeline(payload, options, storage=storage)
    return _result_response(result)


@router.post("/generate/stream")
async def generate_website_stream(
    payload: Any = Body(default=None),
    mock: bool = False,
    skip_upload: bool = False,
    save_local: bool = False,
    storage: SiteStorage = Depends(get_site_storage),
):
    """Start the pipeline and stream progress via SSE."""
    options = PipelineOptions(
        use_mock=mock,
        skip_upload=skip_upload,
        output_dir=settings.OUTPUT_ROOT if save_local else None,
    )
    return EventSourceResponse(stream_pipeline_events(payload, options, storage=storage))


async def stream_pipeline_events(raw_input: Any, options: PipelineOptions, *, storage: SiteStorage | None = None):
    """Pipeline events, closed by an ``unknown`` error event if the generator itself blows up."""
    run_id = generate_run_id()
    try:
        async for event in run_pipeline_generator(raw_input, options, storage=storage, run_id=run_id):
            yield event
    except Exception as exc:
        logger.exception("[%s] Pipeline stream failed", run_id)
        result = PipelineResult(
            status="error",
            run_id=run_id,
            error_phase="unknown",
            error_message=str(exc) or exc.__class__.__name__,
            generated_at=utc_now_iso(),
        )
        yield json.dumps({"status": "error", "result": result.to_response()})


@router.post("/generate/spec")
async def generate_website_spec(payload: Any = Body(default=None), mock: bool = False):
    """
    Run only the Architect stage and hand its instruction off through the tasks folder.

    The markdown handoff file is picked up by the watcher, which builds the markup into
    the returned ``expected_output_path``. A manual ``/upload`` can publish it afterwards.
    """
    run_id = generate_run_id()
    business, errors = validate_business_input(payload)
    if business is None:
        result = PipelineResult(
            status="error",
            run_id=run_id,
            error_phase="validation",
            error_message=summarize_errors(errors),
            validation_errors=errors,
            generated_at=utc_now_iso(),
        )
        return _result_response(result)

    business_slug = slugify(business.business_name)
    try:
        spec = await generate_specification(business, use_mock=mock)
    except Exception as exc:
        logger.error("[%s] Architect Agent failed: %s", run_id, exc, exc_info=True)
        return _error_response(400, run_id, "architect", str(exc))

    task_path = task_file_path(settings.TASKS_ROOT, run_id)
    spec_path = task_path.with_name(f"{run_id}.spec.json")
    created_at = utc_now_iso()
    task_path.parent.mkdir(parents=True, exist_ok=True)
    # The JSON copy goes first so the watcher never sees a task without it.
    spec_path.write_text(spec.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    # Written under a name the watcher ignores, then renamed into place in one step.
    partial_path = task_path.with_name(f"{task_path.name}.partial")
    partial_path.write_text(
        render_task_file(
            metadata={
                "run_id": run_id,
                "business_slug": business_slug,
                "business_name": business.business_name,
                "created_at": created_at,
            },
            body=spec.website_generation_prompt,
        ),
        encoding="utf-8",
    )
    os.replace(partial_path, task_path)
    logger.info("[%s] Specification handed off to %s", run_id, task_path)

    return {
        "status": "success",
        "run_id": run_id,
        "business_slug": business_slug,
        "task_path": str(task_path),
        "spec_path": str(spec_path),
        "expected_output_path": str(local_output_path(settings.OUTPUT_ROOT, business_slug, run_id)),
        "generated_at": created_at,
    }


@router.post("/upload")
async def upload_local_website(
    payload: UploadRequest,
    storage: SiteStorage = Depends(get_site_storage),
):
    """Upload markup that was generated out of band into the conventional local output path."""
    if not (is_safe_path_segment(payload.run_id) and is_safe_path_segment(payload.business_slug)):
        return _error_response(
            400,
            payload.run_id,
            "upload",
            "run_id and business_slug may only contain letters, digits, '-' and '_'",
        )

    html_path: Path = local_output_path(settings.OUTPUT_ROOT, payload.business_slug, payload.run_id)
    if not html_path.is_file():
        return _error_response(
            404,
            payload.run_id,
            "upload",
            f"No generated website found at {html_path}",
            expected_path=str(html_path),
        )

    html = html_path.read_text(encoding="utf-8")
    try:
        upload = await asyncio.to_thread(storage.upload_website, payload.business_slug, html, payload.run_id)
    except Exception as exc:
        logger.error("[%s] Manual upload failed: %s", payload.run_id, exc)
        return _error_response(400, payload.run_id, "upload", str(exc))

    result = PipelineResult(
        status="success",
        run_id=payload.run_id,
        business_slug=payload.business_slug,
        storage_path=upload.storage_path,
        public_url=upload.public_url,
        html_size_bytes=upload.size_bytes,
        generated_at=utc_now_iso(),
    )
    return _result_response(result)


@router.post("/validate")
async def validate_input(payload: Any = Body(default=None)):
    business, errors = validate_business_input(payload)
    if business is None:
        return JSONResponse(
            status_code=400,
            content={"valid": False, "errors": [err.model_dump() for err in errors]},
        )
    return {"valid": True, "data": json.loads(business.model_dump_json(exclude_none=True))}


@router.get("/health")
async def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "llm_configured": settings.llm_configured,
        "storage_configured": settings.storage_configured,
        "bucket": settings.STORAGE_BUCKET,
    }
