from __future__ import annotations

from evalq.config.settings import settings
from evalq.core.state import JobStatus


def decide(score: float, threshold: float | None = None) -> JobStatus:
    """Success si score >= umbral (80 por defecto). Sin recortes a [0, 100]."""
    limit = settings.PASS_THRESHOLD if threshold is None else threshold
    return JobStatus.SUCCESS if score >= limit else JobStatus.FAILURE
