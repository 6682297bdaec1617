from __future__ import annotations

from itertools import chain, islice, zip_longest
from typing import Iterable, Iterator, Optional

import numpy as np

from .accumulator import EMPTY, MeanVarianceAccumulator
from .error import ErrorKind, MeanVarError, new_error
from .options.config import DEFAULT_SHARD_SIZE, ReduceConfig, check_config
from .report import ProgressObserver
from .util.threads import TaskQueueObserver, Threads
from .worker import MessageToWorker, Shard, ShardWorkerLauncher

_MISSING = object()


def merge_all(accumulators: Iterable[MeanVarianceAccumulator]) -> MeanVarianceAccumulator:
    level = list(accumulators)
    if not level:
        return EMPTY
    while len(level) > 1:
        merged = [left.merge(right) for left, right in zip(level[0::2], level[1::2])]
        if len(level) % 2 == 1:
            merged.append(level[-1])
        level = merged
    return level[0]


def _split_arrays(
    values: np.ndarray, weights: Optional[np.ndarray], shard_size: int
) -> Iterator[Shard]:
    xs = np.asarray(values, dtype=float).ravel()
    ws = None
    if weights is not None:
        ws = np.asarray(weights, dtype=float).ravel()
        if ws.shape != xs.shape:
            raise new_error(f"Got {xs.size} values, but {ws.size} weights.")
    for start in range(0, xs.size, shard_size):
        stop = start + shard_size
        yield Shard(xs[start:stop], None if ws is None else ws[start:stop])


def _split_iterables(
    values: Iterable[float], weights: Optional[Iterable[float]], shard_size: int
) -> Iterator[Shard]:
    if weights is None:
        value_iter = iter(values)
        while True:
            chunk = list(islice(value_iter, shard_size))
            if not chunk:
                return
            yield Shard(np.asarray(chunk, dtype=float))
    pairs = zip_longest(values, weights, fillvalue=_MISSING)
    n_seen = 0
    while True:
        chunk = list(islice(pairs, shard_size))
        if not chunk:
            return
        for value, weight in chunk:
            if value is _MISSING or weight is _MISSING:
                raise new_error(f"Values and weights differ in length after {n_seen} entries.")
            n_seen += 1
        chunk_values, chunk_weights = zip(*chunk)
        yield Shard(
            np.asarray(chunk_values, dtype=float), np.asarray(chunk_weights, dtype=float)
        )


def split_shards(
    values: Iterable[float],
    weights: Optional[Iterable[float]] = None,
    shard_size: int = DEFAULT_SHARD_SIZE,
) -> Iterator[Shard]:
    if shard_size < 1:
        raise new_error(f"Shard size needs to be at least 1, but is {shard_size}.")
    if isinstance(values, np.ndarray) and (weights is None or isinstance(weights, np.ndarray)):
        return _split_arrays(values, weights, shard_size)
    return _split_iterables(values, weights, shard_size)


def accumulate(
    values: Iterable[float],
    weights: Optional[Iterable[float]] = None,
    config: Optional[ReduceConfig] = None,
    observer: Optional[TaskQueueObserver] = None,
) -> MeanVarianceAccumulator:
    if config is None:
        config = ReduceConfig()
    check_config(config)
    shards = split_shards(values, weights, config.shard_size)
    n_threads = config.resolved_n_threads()
    if n_threads == 1:
        return merge_all(MeanVarianceAccumulator.from_array(s.values, s.weights) for s in shards)

    first = next(shards, None)
    if first is None:
        return EMPTY
    second = next(shards, None)
    if second is None:
        return MeanVarianceAccumulator.from_array(first.values, first.weights)

    if observer is None:
        observer = ProgressObserver(config.verbose)
    threads = Threads.new(ShardWorkerLauncher(), n_threads)
    try:
        out_messages = (MessageToWorker.shard(s) for s in chain([first, second], shards))
        in_messages = threads.task_queue(out_messages, observer)
    finally:
        threads.close(MessageToWorker.shutdown())

    for i_shard, message in enumerate(in_messages):
        if message.error is not None:
            raise MeanVarError(ErrorKind.WORKER, f"Shard {i_shard}: {message.error}")
    return merge_all(message.accumulator for message in in_messages)
