"""Fenced code block extraction and workspace saves."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

__all__ = ["extract_code", "resolve_filename", "save_code"]

CODE_FENCE_RE = re.compile(r"```[\w+#.-]*[ \t]*\r?\n(.*?)\r?\n```", re.DOTALL)


def extract_code(text: str) -> Optional[str]:
    """Return the body of the first fenced code block in ``text``, or None."""

    if not text:
        return None
    match = CODE_FENCE_RE.search(text)
    if match is None:
        return None
    return match.group(1)


def resolve_filename(name: str, extension: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("A file name is required")
    if Path(name).suffix:
        return name
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return f"{name}{extension}"


def save_code(workspace: Path, filename: str, code: str) -> Path:
    """Write ``code`` to ``workspace/filename``, replacing any existing file."""

    root = Path(workspace).resolve()
    target = (root / filename).resolve()
    if target == root or root not in target.parents:
        raise ValueError(f"Refusing to write outside the workspace: {filename}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(code, encoding="utf-8")
    logger.info("Saved %d chars to %s", len(code), target)
    return target
