"""File writers shared by the report exporters."""

from __future__ import annotations

from pathlib import Path


def export_text_document(path: str | Path, text: str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target
