"""
Task watcher for the two-step generation flow.

``POST /generate/spec`` drops ``{run_id}.md`` handoff files into the tasks folder.
This loop picks them up oldest first, runs the Builder on the instruction body,
writes the markup to the conventional output path and uploads it. Handled files are
moved to ``completed/`` or ``failed/`` so they are never processed twice.
"""
import argparse
import asyncio
import logging
import shutil
import time
from pathlib import Path

from sitegen.agent.artifacts import SiteSpecification, UploadResult
from sitegen.agent.builder_agent import BuilderAgent, MockBuilderAgent, has_doctype
from sitegen.agent.orchestrator import save_markup_locally
from sitegen.core.config import settings
from sitegen.storage import SiteStorage, get_site_storage
from sitegen.utils import is_safe_path_segment, parse_task_file, slugify

logger = logging.getLogger(__name__)

COMPLETED_DIR = "completed"
FAILED_DIR = "failed"


class TaskFileError(ValueError):
    """Raised when a handoff file cannot be turned into a build job."""


def pending_task_files(tasks_root: Path, stable_for: float | None = None) -> list[Path]:
    """Task files oldest first, leaving out any touched within the last ``stable_for`` seconds."""
    if not tasks_root.is_dir():
        return []
    window = settings.WATCH_STABILITY_SECONDS if stable_for is None else stable_for
    now = time.time()
    ready = []
    for path in tasks_root.glob("*.md"):
        if not path.is_file():
            continue
        mtime = path.stat().st_mtime
        if now - mtime < window:
            logger.debug("Skipping %s until it stops changing", path.name)
            continue
        ready.append((mtime, path.name, path))
    return [path for _, _, path in sorted(ready)]


def _companion_spec_path(task_path: Path) -> Path:
    return task_path.with_name(f"{task_path.stem}.spec.json")


def load_task(task_path: Path) -> tuple[str, str, SiteSpecification]:
    """Read a handoff file and return ``(run_id, business_slug, specification)``."""
    metadata, body = parse_task_file(task_path.read_text(encoding="utf-8"))
    run_id = metadata.get("run_id") or task_path.stem
    business_name = metadata.get("business_name") or None
    business_slug = metadata.get("business_slug") or slugify(business_name or "")
    if not (is_safe_path_segment(run_id) and is_safe_path_segment(business_slug)):
        raise TaskFileError(f"Unsafe run_id or business_slug in {task_path.name}")

    spec_path = _companion_spec_path(task_path)
    if spec_path.is_file():
        spec = SiteSpecification.model_validate_json(spec_path.read_text(encoding="utf-8"))
    else:
        if not body:
            raise TaskFileError(f"{task_path.name} has no instructions")
        spec = SiteSpecification(website_generation_prompt=body, business_name=business_name)
    if body and body != spec.website_generation_prompt:
        # Edits made to the markdown body win over the JSON copy.
        spec = spec.model_copy(update={"website_generation_prompt": body})
    return run_id, business_slug, spec


def _archive(task_path: Path, destination: str) -> Path:
    target_dir = task_path.parent / destination
    target_dir.mkdir(parents=True, exist_ok=True)
    spec_path = _companion_spec_path(task_path)
    if spec_path.is_file():
        shutil.move(str(spec_path), str(target_dir / spec_path.name))
    target = target_dir / task_path.name
    shutil.move(str(task_path), str(target))
    return target


async def process_task_file(
    task_path: Path,
    *,
    builder: BuilderAgent | MockBuilderAgent,
    storage: SiteStorage | None,
    output_root: str,
) -> UploadResult | None:
    run_id, business_slug, spec = load_task(task_path)
    logger.info("[%s] Building %s from %s", run_id, business_slug, task_path.name)

    html = await builder.run(spec)
    if not has_doctype(html):
        if settings.REQUIRE_DOCTYPE:
            raise TaskFileError("Generated markup is missing a <!DOCTYPE html> declaration")
        logger.warning("[%s] Generated HTML may be invalid (missing DOCTYPE)", run_id)

    local_path = save_markup_locally(output_root, business_slug, run_id, html)
    logger.info("[%s] Saved locally to %s", run_id, local_path)
    if storage is None:
        return None
    return await asyncio.to_thread(storage.upload_website, business_slug, html, run_id)


async def process_pending(
    tasks_root: Path,
    *,
    builder: BuilderAgent | MockBuilderAgent,
    storage: SiteStorage | None,
    output_root: str,
) -> int:
    """Handle every task currently waiting, one at a time. Returns the number processed."""
    processed = 0
    for task_path in pending_task_files(tasks_root):
        try:
            upload = await process_task_file(
                task_path, builder=builder, storage=storage, output_root=output_root
            )
        except Exception as exc:
            logger.error("Task %s failed: %s", task_path.name, exc, exc_info=True)
            _archive(task_path, FAILED_DIR)
        else:
            if upload is not None:
                logger.info("Task %s published at %s", task_path.name, upload.public_url)
            _archive(task_path, COMPLETED_DIR)
        processed += 1
    return processed


async def watch(
    tasks_root: Path,
    *,
    use_mock: bool = False,
    once: bool = False,
    skip_upload: bool = False,
    poll_interval: float | None = None,
    builder: BuilderAgent | MockBuilderAgent | None = None,
    storage: SiteStorage | None = None,
) -> int:
    builder = builder or (MockBuilderAgent() if use_mock else BuilderAgent())
    if not skip_upload:
        storage = storage or get_site_storage()
    interval = settings.WATCH_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval

    tasks_root.mkdir(parents=True, exist_ok=True)
    logger.info("Watching %s for handoff files (mode=%s)", tasks_root, "mock" if use_mock else "live")
    total = 0
    while True:
        total += await process_pending(
            tasks_root,
            builder=builder,
            storage=None if skip_upload else storage,
            output_root=settings.OUTPUT_ROOT,
        )
        if once:
            return total
        await asyncio.sleep(interval)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build websites from handoff files in the tasks folder.")
    parser.add_argument("--tasks-root", default=settings.TASKS_ROOT)
    parser.add_argument("--mock", action="store_true", help="Use the deterministic mock builder.")
    parser.add_argument("--once", action="store_true", help="Process the current backlog and exit.")
    parser.add_argument("--skip-upload", action="store_true", help="Only write the local output file.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        processed = asyncio.run(
            watch(Path(args.tasks_root), use_mock=args.mock, once=args.once, skip_upload=args.skip_upload)
        )
    except KeyboardInterrupt:
        logger.info("Watcher stopped")
        return 0
    logger.info("Processed %s task(s)", processed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
