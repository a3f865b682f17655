import re
import time
import unicodedata
import uuid
from datetime import datetime, timezone
from pathlib import Path

SLUG_MAX_LENGTH = 50
SLUG_FALLBACK = "business"

# Run ids and slugs end up as path segments on disk and in the bucket.
_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")


def slugify(text: str) -> str:
    """
    Convert a business name to a URL-safe slug.

    Lowercase ASCII letters, digits and single hyphens only, no leading or
    trailing hyphen, at most 50 characters. Accented letters are folded to their
    ASCII base; names with nothing usable fall back to ``business``.
    """
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = folded.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or SLUG_FALLBACK


def generate_run_id() -> str:
    return f"run-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def is_safe_path_segment(value: str) -> bool:
    return bool(_SAFE_SEGMENT.fullmatch(value or ""))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def local_output_path(output_root: str | Path, business_slug: str, run_id: str) -> Path:
    return Path(output_root) / business_slug / run_id / "index.html"


def task_file_path(tasks_root: str | Path, run_id: str) -> Path:
    return Path(tasks_root) / f"{run_id}.md"


def render_task_file(*, metadata: dict[str, str], body: str) -> str:
    header = "\n".join(f"{key}: {value}" for key, value in metadata.items())
    return f"---\n{header}\n---\n\n{body.strip()}\n"


def parse_task_file(content: str) -> tuple[dict[str, str], str]:
    """Split a handoff file into its front matter mapping and the instruction body."""
    lines = (content or "").splitlines()
    metadata: dict[str, str] = {}
    if not lines or lines[0].strip() != "---":
        return metadata, (content or "").strip()

    body_start = len(lines)
    for idx in range(1, len(lines)):
        line = lines[idx]
        if line.strip() == "---":
            body_start = idx + 1
            break
        key, sep, value = line.partition(":")
        if sep and key.strip():
            metadata[key.strip()] = value.strip()
    return metadata, "\n".join(lines[body_start:]).strip()
