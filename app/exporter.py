from __future__ import annotations

from pathlib import Path
from typing import Optional


DATA_DIR = Path(__file__).resolve().parent / "data" / "exports"
DATA_DIR.mkdir(parents=True, exist_ok=True)


def export_report(text: str, filename: str, *, directory: Optional[Path] = None) -> Path:
    """Write report text under the exports directory and return its path."""
    if not filename.lower().endswith(".csv"):
        raise ValueError("report filename must end with .csv")
    target_dir = directory or DATA_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / Path(filename).name
    target.write_text(text, encoding="utf-8")
    return target
