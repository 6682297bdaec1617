from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib
import tomli_w

from ..error import MeanVarError, ErrorKind, for_context, for_file, new_error

DEFAULT_SHARD_SIZE = 65536


@dataclass
class ReduceConfig:
    n_threads: Optional[int] = None
    shard_size: int = DEFAULT_SHARD_SIZE
    verbose: bool = False

    def resolved_n_threads(self) -> int:
        if self.n_threads is None:
            return os.cpu_count() or 1
        return self.n_threads


def check_config(config: ReduceConfig) -> None:
    if config.n_threads is not None and config.n_threads < 1:
        raise new_error(f"reduce.n_threads needs to be at least 1, but is {config.n_threads}.")
    if config.shard_size < 1:
        raise new_error(f"reduce.shard_size needs to be at least 1, but is {config.shard_size}.")


def config_from_dict(data: dict) -> ReduceConfig:
    reduce_data = data.get("reduce", {})
    if not isinstance(reduce_data, dict):
        raise new_error("Section [reduce] needs to be a table.")
    n_threads = reduce_data.get("n_threads")
    config = ReduceConfig(
        n_threads=int(n_threads) if n_threads is not None else None,
        shard_size=int(reduce_data.get("shard_size", DEFAULT_SHARD_SIZE)),
        verbose=bool(reduce_data.get("verbose", False)),
    )
    check_config(config)
    return config


def load_config(path: str) -> ReduceConfig:
    try:
        with open(path, "rb") as handle:
            data = tomllib.load(handle)
    except OSError as exc:
        raise for_file(path, exc) from exc
    except tomllib.TOMLDecodeError as exc:
        raise MeanVarError(ErrorKind.TOML_DE, f"{path}: {exc}") from exc
    try:
        return config_from_dict(data)
    except (MeanVarError, TypeError, ValueError) as exc:
        raise for_context(path, exc) from exc


def config_to_toml(config: ReduceConfig) -> str:
    reduce_data: dict = {
        "shard_size": config.shard_size,
        "verbose": config.verbose,
    }
    if config.n_threads is not None:
        reduce_data["n_threads"] = config.n_threads
    try:
        return tomli_w.dumps({"reduce": reduce_data})
    except Exception as exc:
        raise MeanVarError(ErrorKind.TOML_SER, str(exc)) from exc
