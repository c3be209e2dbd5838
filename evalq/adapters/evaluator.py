from __future__ import annotations

import asyncio
import contextlib
import os
import shlex
import signal
from dataclasses import dataclass
from pathlib import Path

from evalq.config.settings import settings
from evalq.core.errors import LaunchError
from evalq.core.logging import logger
from evalq.schemas.models import Job
from evalq.utils.paths import ensure_dir, output_filename, staged_filename


@dataclass(frozen=True)
class StagedSubmission:
    input_path: Path
    output_path: Path


def stage_submission(
    payload: str,
    name: str,
    job_id: str,
    staging_dir: Path | None = None,
    output_dir: Path | None = None,
) -> StagedSubmission:
    """
    Escribe el payload tal cual en el directorio de staging.
    El directorio de salida queda reservado para artefactos del evaluador.
    """
    fname = staged_filename(name, job_id, settings.INPUT_SUFFIX)
    try:
        in_dir = ensure_dir(staging_dir or settings.STAGING_DIR)
        out_dir = ensure_dir(output_dir or settings.OUTPUT_DIR)
        input_path = in_dir / fname
        input_path.write_text(payload, encoding="utf-8")
    except OSError as e:
        raise LaunchError(f"staging failed for {fname}: {e}") from e
    return StagedSubmission(input_path, out_dir / output_filename(fname, settings.OUTPUT_SUFFIX))


def _kill_tree(proc: asyncio.subprocess.Process) -> None:
    if os.name == "posix":
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(proc.pid, signal.SIGKILL)
            return
    with contextlib.suppress(ProcessLookupError):
        proc.kill()


async def run_evaluator(
    path: Path,
    *,
    command: str | None = None,
    timeout: float | None = None,
) -> str:
    """Lanza `<command> <path>` y devuelve stdout+stderr combinados si rc == 0."""
    argv = [*shlex.split(command or settings.EVALUATOR_CMD), str(path)]
    max_secs = timeout if timeout is not None else settings.EVALUATOR_TIMEOUT_SECS

    logger.info("[EVAL][exec] cmd=%s timeout=%ss", argv, max_secs)
    try:
        # sesión propia (POSIX): el timeout mata también a los hijos de un wrapper .sh
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        raise LaunchError(f"cannot launch evaluator {argv[0]!r}: {e}") from e

    try:
        raw, _ = await asyncio.wait_for(proc.communicate(), timeout=max_secs)
    except TimeoutError:
        logger.error("[EVAL][TOUT] killing evaluator after %ss", max_secs)
        _kill_tree(proc)
        try:
            await asyncio.wait_for(proc.wait(), timeout=10)
        except TimeoutError:
            logger.error("[EVAL][TOUT] evaluator pid=%s did not exit after kill", proc.pid)
        raise LaunchError(f"evaluator timed out after {max_secs}s") from None

    output = raw.decode("utf-8", "replace") if raw else ""
    rc = proc.returncode
    if rc != 0:
        lines = output.splitlines()
        tail = lines[-20:] if len(lines) > 20 else lines
        logger.error("[EVAL][done] rc=%s lines=%d tail=%s", rc, len(lines), "\n".join(tail))
        raise LaunchError(f"evaluator exited with rc={rc}", returncode=rc, output=output)

    logger.info("[EVAL][done] rc=0 bytes=%d", len(raw or b""))
    return output


async def invoke(job: Job, *, command: str | None = None, timeout: float | None = None) -> str:
    staged = stage_submission(job.payload, job.name, job.id)
    return await run_evaluator(staged.input_path, command=command, timeout=timeout)
