import asyncio
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sitegen.agent.architect_agent import ArchitectAgent, MockArchitectAgent
from sitegen.agent.artifacts import BusinessInput, ErrorPhase, FieldError, PipelineResult, SiteSpecification
from sitegen.agent.builder_agent import BuilderAgent, MockBuilderAgent, has_doctype
from sitegen.agent.validation import summarize_errors, validate_business_input
from sitegen.core.config import settings
from sitegen.storage import SiteStorage, get_site_storage
from sitegen.utils import generate_run_id, local_output_path, slugify, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOptions:
    use_mock: bool = False
    skip_upload: bool = False
    output_dir: str | None = None


class RunLogger(logging.LoggerAdapter):
    """Prefixes every record with the run id and the seconds elapsed since the run started."""

    def process(self, msg, kwargs):
        elapsed = time.monotonic() - self.extra["started"]
        return f"[{self.extra['run_id']}] [{elapsed:.2f}s] {msg}", kwargs


def _event(status: str, **payload: Any) -> str:
    return json.dumps({"status": status, **payload})


def _error_result(
    run_id: str,
    phase: ErrorPhase,
    message: str,
    *,
    validation_errors: list[FieldError] | None = None,
) -> PipelineResult:
    return PipelineResult(
        status="error",
        run_id=run_id,
        error_phase=phase,
        error_message=message,
        validation_errors=validation_errors,
        generated_at=utc_now_iso(),
    )


def save_markup_locally(output_dir: str, business_slug: str, run_id: str, html: str) -> Path:
    path = local_output_path(output_dir, business_slug, run_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    return path


async def run_pipeline_generator(
    raw_input: Any,
    options: PipelineOptions | None = None,
    *,
    architect: ArchitectAgent | MockArchitectAgent | None = None,
    builder: BuilderAgent | MockBuilderAgent | None = None,
    storage: SiteStorage | None = None,
    run_id: str | None = None,
):
    """
    Generator that runs validate -> architect -> builder -> upload in order and yields
    JSON progress events. The last event is ``completed`` or ``error`` and carries the
    PipelineResult under ``result``. Stops at the first failing stage.
    """
    options = options or PipelineOptions()
    run_id = run_id or generate_run_id()
    log = RunLogger(logger, {"run_id": run_id, "started": time.monotonic()})
    log.info("Starting website generation pipeline (mode=%s)", "mock" if options.use_mock else "live")

    # 1. Validation
    yield _event("validation", run_id=run_id, message="Validating business input...")
    business, errors = validate_business_input(raw_input)
    if business is None:
        message = summarize_errors(errors)
        log.error(message)
        result = _error_result(run_id, "validation", message, validation_errors=errors)
        yield _event("error", result=result.to_response())
        return

    business_slug = slugify(business.business_name)
    log.info("Input validated for %s (slug=%s)", business.business_name, business_slug)

    # 2. Architect
    yield _event("architect", run_id=run_id, message="Designing the website specification...")
    try:
        if architect is None:
            architect = MockArchitectAgent() if options.use_mock else ArchitectAgent()
        spec: SiteSpecification = await architect.run(business)
    except Exception as exc:
        log.error("Architect Agent failed: %s", exc, exc_info=True)
        yield _event("error", result=_error_result(run_id, "architect", str(exc)).to_response())
        return

    log.info("Architect Agent completed (%s prompt chars)", len(spec.website_generation_prompt))
    if spec.page_sections:
        log.info("Sections: %s", ", ".join(section.section_id for section in spec.page_sections))
    yield _event("architect_done", run_id=run_id, artifact=spec.model_dump(exclude_none=True))

    # 3. Builder
    yield _event("builder", run_id=run_id, message="Generating website markup...")
    try:
        if builder is None:
            builder = MockBuilderAgent() if options.use_mock else BuilderAgent()
        html = await builder.run(spec)
    except Exception as exc:
        log.error("Builder Agent failed: %s", exc, exc_info=True)
        yield _event("error", result=_error_result(run_id, "builder", str(exc)).to_response())
        return

    html_size_bytes = len(html.encode("utf-8"))
    log.info("Builder Agent completed (%s bytes)", html_size_bytes)
    if not has_doctype(html):
        if settings.REQUIRE_DOCTYPE:
            message = "Generated markup is missing a <!DOCTYPE html> declaration"
            log.error(message)
            yield _event("error", result=_error_result(run_id, "builder", message).to_response())
            return
        log.warning("Generated HTML may be invalid (missing DOCTYPE)")

    local_path: Path | None = None
    if options.output_dir:
        try:
            local_path = save_markup_locally(options.output_dir, business_slug, run_id, html)
            log.info("Saved locally to %s", local_path)
        except OSError as exc:
            log.warning("Could not save markup locally: %s", exc)
    yield _event(
        "builder_done",
        run_id=run_id,
        html_size_bytes=html_size_bytes,
        local_path=str(local_path) if local_path else None,
    )

    # 4. Upload
    if options.skip_upload:
        log.info("Skipping upload (skip_upload=true)")
        result = PipelineResult(
            status="success",
            run_id=run_id,
            business_slug=business_slug,
            html_size_bytes=html_size_bytes,
            generated_at=utc_now_iso(),
        )
        yield _event("completed", result=result.to_response())
        return

    yield _event("upload", run_id=run_id, message="Uploading website to storage...")
    try:
        storage = storage or get_site_storage()
        if not await asyncio.to_thread(storage.bucket_exists):
            log.warning("Bucket check failed - attempting upload anyway")
        upload = await asyncio.to_thread(storage.upload_website, business_slug, html, run_id)
    except Exception as exc:
        log.error("Upload failed: %s", exc)
        yield _event("error", result=_error_result(run_id, "upload", str(exc)).to_response())
        return

    log.info("Pipeline complete: %s", upload.public_url)
    result = PipelineResult(
        status="success",
        run_id=run_id,
        business_slug=business_slug,
        storage_path=upload.storage_path,
        public_url=upload.public_url,
        html_size_bytes=upload.size_bytes,
        generated_at=utc_now_iso(),
    )
    yield _event("completed", result=result.to_response())


async def run_pipeline(
    raw_input: Any,
    options: PipelineOptions | None = None,
    **kwargs: Any,
) -> PipelineResult:
    """Run the whole pipeline and return its terminal result."""
    final_event: dict[str, Any] = {}
    async for event in run_pipeline_generator(raw_input, options, **kwargs):
        final_event = json.loads(event)
    return PipelineResult.model_validate(final_event["result"])


async def generate_specification(
    business: BusinessInput,
    *,
    use_mock: bool = False,
    architect: ArchitectAgent | MockArchitectAgent | None = None,
) -> SiteSpecification:
    if architect is None:
        architect = MockArchitectAgent() if use_mock else ArchitectAgent()
    return await architect.run(business)
