import os
import time
from unittest.mock import MagicMock

import pytest

from sitegen.agent.artifacts import SiteSpecification, SiteStyleGuidelines, UploadResult
from sitegen.agent.builder_agent import MockBuilderAgent
from sitegen.utils import render_task_file
from sitegen.watcher import load_task, pending_task_files, process_pending, watch


def _age(path, seconds=10):
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


def _write_task(tasks_root, run_id, *, slug="sharma-optics", body="Build a calm site.", spec=None, fresh=False):
    tasks_root.mkdir(parents=True, exist_ok=True)
    path = tasks_root / f"{run_id}.md"
    path.write_text(
        render_task_file(
            metadata={"run_id": run_id, "business_slug": slug, "business_name": "Sharma Optics"},
            body=body,
        ),
        encoding="utf-8",
    )
    if spec is not None:
        (tasks_root / f"{run_id}.spec.json").write_text(spec.model_dump_json(), encoding="utf-8")
    if not fresh:
        _age(path)
    return path


@pytest.fixture
def storage():
    fake = MagicMock()
    fake.upload_website.return_value = UploadResult(
        storage_path="sharma-optics/1/index.html",
        public_url="https://cdn.example.com/websites/sharma-optics/1/index.html",
        size_bytes=10,
    )
    return fake


def test_pending_tasks_are_ordered_oldest_first(tmp_path):
    newer = _write_task(tmp_path, "run-2-bbbbbb")
    older = _write_task(tmp_path, "run-1-aaaaaa")
    os.utime(older, (1_000, 1_000))
    os.utime(newer, (2_000, 2_000))
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert pending_task_files(tmp_path) == [older, newer]
    assert pending_task_files(tmp_path / "missing") == []


def test_load_task_prefers_edited_body_over_json_copy(tmp_path):
    spec = SiteSpecification(
        website_generation_prompt="Original instructions",
        business_name="Sharma Optics",
        site_style_guidelines=SiteStyleGuidelines(primary_color="#0f766e"),
    )
    path = _write_task(tmp_path, "run-1-aaaaaa", body="Edited instructions", spec=spec)

    run_id, slug, loaded = load_task(path)

    assert (run_id, slug) == ("run-1-aaaaaa", "sharma-optics")
    assert loaded.website_generation_prompt == "Edited instructions"
    assert loaded.site_style_guidelines.primary_color == "#0f766e"


@pytest.mark.asyncio
async def test_task_is_built_uploaded_and_archived(tmp_path, storage):
    tasks_root = tmp_path / "tasks"
    output_root = tmp_path / "output"
    _write_task(tasks_root, "run-1-aaaaaa", spec=SiteSpecification(website_generation_prompt="x"))

    processed = await process_pending(
        tasks_root, builder=MockBuilderAgent(), storage=storage, output_root=str(output_root)
    )

    assert processed == 1
    html_path = output_root / "sharma-optics" / "run-1-aaaaaa" / "index.html"
    assert html_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
    storage.upload_website.assert_called_once()
    assert storage.upload_website.call_args.args[0] == "sharma-optics"
    assert storage.upload_website.call_args.args[2] == "run-1-aaaaaa"
    assert (tasks_root / "completed" / "run-1-aaaaaa.md").is_file()
    assert (tasks_root / "completed" / "run-1-aaaaaa.spec.json").is_file()
    assert pending_task_files(tasks_root) == []


@pytest.mark.asyncio
async def test_failing_task_is_moved_aside(tmp_path, storage):
    tasks_root = tmp_path / "tasks"
    _write_task(tasks_root, "run-1-aaaaaa", slug="../escape")
    storage.upload_website.side_effect = AssertionError("should not upload")

    processed = await process_pending(
        tasks_root, builder=MockBuilderAgent(), storage=storage, output_root=str(tmp_path / "output")
    )

    assert processed == 1
    assert (tasks_root / "failed" / "run-1-aaaaaa.md").is_file()
    assert not (tmp_path / "output").exists()


@pytest.mark.asyncio
async def test_watch_once_drains_backlog_without_upload(tmp_path, monkeypatch):
    monkeypatch.setattr("sitegen.watcher.settings.OUTPUT_ROOT", str(tmp_path / "output"))
    tasks_root = tmp_path / "tasks"
    _write_task(tasks_root, "run-1-aaaaaa")
    _write_task(tasks_root, "run-2-bbbbbb")

    processed = await watch(tasks_root, use_mock=True, once=True, skip_upload=True)

    assert processed == 2
    assert (tmp_path / "output" / "sharma-optics" / "run-2-bbbbbb" / "index.html").is_file()
    assert sorted(p.name for p in (tasks_root / "completed").iterdir()) == ["run-1-aaaaaa.md", "run-2-bbbbbb.md"]


@pytest.mark.asyncio
async def test_half_written_task_waits_until_it_settles(tmp_path):
    tasks_root = tmp_path / "tasks"
    tasks_root.mkdir()
    path = tasks_root / "run-9-abcdef.md"
    path.write_text("---\nrun_id: run-9-abcdef\nbusiness_slug: acme\n", encoding="utf-8")

    processed = await process_pending(
        tasks_root, builder=MockBuilderAgent(), storage=None, output_root=str(tmp_path / "output")
    )

    assert processed == 0
    assert path.is_file()
    assert not (tasks_root / "failed").exists()
    assert pending_task_files(tasks_root, stable_for=0) == [path]

    path.write_text(
        render_task_file(metadata={"run_id": "run-9-abcdef", "business_slug": "acme"}, body="Build a calm site."),
        encoding="utf-8",
    )
    _age(path)

    processed = await process_pending(
        tasks_root, builder=MockBuilderAgent(), storage=None, output_root=str(tmp_path / "output")
    )

    assert processed == 1
    assert (tasks_root / "completed" / "run-9-abcdef.md").is_file()
    assert (tmp_path / "output" / "acme" / "run-9-abcdef" / "index.html").is_file()
