from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from datetime import datetime

from evalq.adapters import evaluator
from evalq.config.settings import settings
from evalq.core.db import TIMESTAMP_FMT, JobStore
from evalq.core.errors import LaunchError, ParseError, StoreError
from evalq.core.logging import logger
from evalq.core.results import parse_score
from evalq.core.state import JobStatus
from evalq.core.verdict import decide
from evalq.schemas.models import Job, Verdict

Invoker = Callable[[Job], Awaitable[str]]


def parse_timestamp(text: str | None) -> datetime | None:
    try:
        return datetime.strptime((text or "").strip(), TIMESTAMP_FMT)
    except ValueError:
        return None


def order_pending(jobs: list[Job]) -> list[Job]:
    """
    Orden ascendente por timestamp de encolado (DD-MM-YYYY HH:MM).
    Los que no parsean van al final, en el orden en que los devolvió el store.
    """

    def _key(job: Job) -> tuple[int, datetime]:
        ts = parse_timestamp(job.timestamp)
        return (0, ts) if ts is not None else (1, datetime.min)

    return sorted(jobs, key=_key)


async def evaluate_job(job: Job, invoke: Invoker | None = None) -> Verdict:
    run = invoke or evaluator.invoke
    try:
        output = await run(job)
        score = parse_score(output)
    except (LaunchError, ParseError) as e:
        logger.error(
            "[CYCLE] job=%s name=%r kind=%s err=%s", job.id, job.name, e.kind, e,
            extra={"job_id": job.id},
        )
        return Verdict(status=JobStatus.FAILURE, score=0.0, error_kind=e.kind)
    except Exception:
        logger.exception("[CYCLE] job=%s unexpected error", job.id, extra={"job_id": job.id})
        return Verdict(status=JobStatus.FAILURE, score=0.0, error_kind="internal")
    return Verdict(status=decide(score), score=score)


async def run_cycle(store: JobStore, invoke: Invoker | None = None) -> int:
    """Una pasada sobre los Pending actuales. Devuelve cuántos jobs quedaron resueltos."""
    try:
        # sqlite es síncrono: fuera del event loop
        pending = order_pending(await asyncio.to_thread(store.list_pending))
    except StoreError as e:
        logger.error("[CYCLE] pending query failed, skipping pass: %s", e)
        return 0

    if pending:
        logger.info("[CYCLE] start | items=%d", len(pending))

    resolved = 0
    for job in pending:
        verdict = await evaluate_job(job, invoke)
        # el write-back es el último paso: si se corta antes, el job sigue Pending
        try:
            changed = await asyncio.to_thread(
                store.update_verdict, job.id, verdict.status, verdict.score, verdict.error_kind
            )
            if changed:
                resolved += 1
        except StoreError as e:
            logger.error(
                "[CYCLE] write-back failed job=%s, stays Pending: %s", job.id, e,
                extra={"job_id": job.id},
            )
            continue
        logger.info(
            "[CYCLE] processed job=%s name=%r status=%s score=%s",
            job.id, job.name, verdict.status.value, verdict.score,
            extra={"job_id": job.id},
        )
    return resolved


async def run_forever(
    store: JobStore,
    poll_interval: float | None = None,
    stop_evt: asyncio.Event | None = None,
    invoke: Invoker | None = None,
) -> None:
    interval = settings.POLL_INTERVAL_SECS if poll_interval is None else poll_interval
    logger.info("[CYCLE] worker up | poll=%ss", interval)
    while not (stop_evt and stop_evt.is_set()):
        try:
            await run_cycle(store, invoke)
        except Exception:
            logger.exception("[CYCLE] pass aborted")
        if stop_evt is None:
            await asyncio.sleep(interval)
            continue
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop_evt.wait(), timeout=interval)
    logger.info("[CYCLE] worker stopped")
