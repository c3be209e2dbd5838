from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Callable


def _backoff(source_type: str, attempt: int, exc: Exception, delay: float, jitter: bool) -> float:
    from evalq.core.logging import logger

    sleep = delay + (random.uniform(0, delay) if jitter else 0.0)
    logger.warning("retry/%s attempt=%d err=%r sleep=%.2fs", source_type, attempt, exc, sleep)
    return sleep


def retry(
    source_type: str,
    tries: int = 3,
    base_delay: float = 0.5,
    jitter: bool = True,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
):
    """
    Decorador de reintentos con backoff exponencial.
    - source_type: etiqueta para logs.
    - tries: intentos totales (incluye el primero).
    - retry_on: solo estas excepciones se reintentan; el resto se propaga enseguida.
    """

    def _wrap(fn: Callable):
        if asyncio.iscoroutinefunction(fn):

            async def _arun(*args, **kwargs):
                from evalq.core.logging import logger

                delay = base_delay
                for i in range(1, max(1, tries) + 1):
                    try:
                        return await fn(*args, **kwargs)
                    except retry_on as e:
                        if i >= tries:
                            logger.error("retry/%s exhausted after %d tries: %r", source_type, i, e)
                            raise
                        await asyncio.sleep(_backoff(source_type, i, e, delay, jitter))
                        delay *= 2

            return _arun
        else:

            def _run(*args, **kwargs):
                from evalq.core.logging import logger

                delay = base_delay
                for i in range(1, max(1, tries) + 1):
                    try:
                        return fn(*args, **kwargs)
                    except retry_on as e:
                        if i >= tries:
                            logger.error("retry/%s exhausted after %d tries: %r", source_type, i, e)
                            raise
                        time.sleep(_backoff(source_type, i, e, delay, jitter))
                        delay *= 2

            return _run

    return _wrap
