import re

import pytest

from sitegen.utils import (
    generate_run_id,
    is_safe_path_segment,
    local_output_path,
    parse_task_file,
    render_task_file,
    slugify,
    task_file_path,
)

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Sharma Optics", "sharma-optics"),
        ("  Joe's   Pizza & Grill!  ", "joes-pizza-grill"),
        ("Café Crème", "cafe-creme"),
        ("--Already--Hyphenated--", "already-hyphenated"),
        ("日本料理", "business"),
        ("", "business"),
    ],
)
def test_slugify_examples(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize(
    "name",
    [
        "A" * 200,
        "word " * 40,
        "a-" * 60,
        "Ünïcödé Bäkery & Co. -- Since 1901 ***",
        "\t\n",
        "x" * 49 + " y",
    ],
)
def test_slug_invariants_hold_for_any_input(name):
    slug = slugify(name)

    assert len(slug) <= 50
    assert SLUG_RE.match(slug)


def test_run_ids_are_unique_and_path_safe():
    run_ids = {generate_run_id() for _ in range(50)}

    assert len(run_ids) == 50
    for run_id in run_ids:
        assert re.fullmatch(r"run-\d+-[0-9a-f]{6}", run_id)
        assert is_safe_path_segment(run_id)


@pytest.mark.parametrize("value", ["../etc", "a/b", "", ".hidden", "run 1", "x" * 200])
def test_unsafe_path_segments_are_rejected(value):
    assert not is_safe_path_segment(value)


def test_conventional_paths(tmp_path):
    assert local_output_path(tmp_path, "acme", "run-1") == tmp_path / "acme" / "run-1" / "index.html"
    assert task_file_path(tmp_path, "run-1") == tmp_path / "run-1.md"


def test_task_file_front_matter_roundtrip():
    content = render_task_file(
        metadata={"run_id": "run-1", "business_slug": "acme", "business_name": "Acme: The Shop"},
        body="Build a bold site.\n\nUse orange.",
    )

    assert content.startswith("---\nrun_id: run-1\n")
    metadata, body = parse_task_file(content)
    assert metadata == {"run_id": "run-1", "business_slug": "acme", "business_name": "Acme: The Shop"}
    assert body == "Build a bold site.\n\nUse orange."


def test_task_file_without_front_matter_is_all_body():
    assert parse_task_file("Just instructions") == ({}, "Just instructions")
