"""Taxonomía de errores del pipeline de evaluación.

LaunchError y ParseError son locales a un job: el runner los captura y
resuelve el job como Failure con score 0. StoreError viene del almacén y
nunca marca un job como fallido.
"""

from __future__ import annotations


class EvalqError(Exception):
    kind = "error"


class LaunchError(EvalqError):
    """Fallo al escribir el archivo, lanzar el evaluador, rc != 0 o timeout."""

    kind = "launch"

    def __init__(self, message: str, *, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class ParseError(EvalqError):
    """La última línea de la salida no es un registro de resultado válido."""

    kind = "parse"


class StoreError(EvalqError):
    kind = "store"


EvaluationLaunchError = LaunchError
ResultParseError = ParseError
