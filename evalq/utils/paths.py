from __future__ import annotations

import re
from pathlib import Path


def ensure_dir(p: str | Path) -> Path:
    path = Path(p).expanduser().resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_name(s: str | None) -> str:
    if s is None:
        return ""
    # nombre de archivo seguro también en Windows
    return re.sub(r'[<>:"/\\|?*\x00-\x1F\s]+', "_", s).strip("_.")


def staged_filename(name: str, job_id: str, suffix: str = ".ipynb") -> str:
    """Nombre determinista por alumno + job (único por job, no solo por alumno)."""
    base = safe_name(name) or "submission"
    return f"{base}_{safe_name(job_id)}{suffix}"


def output_filename(staged: str, output_suffix: str = "_output.txt") -> str:
    return Path(staged).stem + output_suffix
