"""Lectura del resultado del evaluador.

Contrato: los diagnósticos van primero y la última línea no vacía es un
objeto JSON con al menos el campo ``accuracy``. El evaluador puede informar
una fracción o un porcentaje.
"""

from __future__ import annotations

import json
import math

from evalq.core.errors import ParseError
from evalq.core.logging import logger


def last_line(output: str) -> str:
    for line in reversed((output or "").splitlines()):
        if line.strip():
            return line.strip()
    raise ParseError("evaluator output is empty")


def parse_accuracy(output: str) -> float:
    line = last_line(output)
    try:
        record = json.loads(line)
    except ValueError as e:
        raise ParseError(f"last line is not JSON: {line[:120]!r}") from e
    if not isinstance(record, dict):
        raise ParseError(f"last line is not a JSON object: {line[:120]!r}")

    value = record.get("accuracy") or 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"accuracy is not numeric: {value!r}")
    try:
        accuracy = float(value)
    except OverflowError as e:
        raise ParseError(f"accuracy out of range: {str(value)[:40]}...") from e
    if not math.isfinite(accuracy):
        raise ParseError(f"accuracy is not finite: {value!r}")
    return accuracy


def normalize_score(value: float) -> float:
    # 0 y 1 exactos NO se reescalan
    if 0 < value < 1:
        return value * 100
    return value


def parse_score(output: str) -> float:
    accuracy = parse_accuracy(output)
    score = normalize_score(accuracy)
    logger.debug("[PARSE] accuracy=%s score=%s", accuracy, score)
    return score
