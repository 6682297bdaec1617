from __future__ import annotations

from dataclasses import dataclass


class ErrorKind:
    MEANVAR = "meanvar error"
    IO = "I/O error"
    TOML_DE = "TOML deserialization error"
    TOML_SER = "TOML serialization error"
    WORKER = "worker error"


@dataclass
class MeanVarError(Exception):
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


def new_error(message: str) -> MeanVarError:
    return MeanVarError(ErrorKind.MEANVAR, message)


def for_file(file: str, exc: Exception) -> MeanVarError:
    return MeanVarError(ErrorKind.IO, f"{file}: {exc}")


def for_context(context: str, exc: Exception) -> MeanVarError:
    if isinstance(exc, MeanVarError):
        return MeanVarError(exc.kind, f"{context}: {exc.message}")
    return MeanVarError(ErrorKind.MEANVAR, f"{context}: {exc}")
