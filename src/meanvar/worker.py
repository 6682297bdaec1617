from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .accumulator import MeanVarianceAccumulator


@dataclass
class Shard:
    values: np.ndarray
    weights: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return int(self.values.size)


class MessageToWorker:
    def __init__(self, kind: str, payload: Optional[Shard] = None) -> None:
        self.kind = kind
        self.payload = payload

    @classmethod
    def shard(cls, shard: Shard) -> "MessageToWorker":
        return cls("shard", shard)

    @classmethod
    def shutdown(cls) -> "MessageToWorker":
        return cls("shutdown")


class MessageToCentral:
    def __init__(
        self,
        i_thread: int,
        accumulator: Optional[MeanVarianceAccumulator] = None,
        error: Optional[str] = None,
    ) -> None:
        self._i_thread = i_thread
        self.accumulator = accumulator
        self.error = error

    def i_thread(self) -> int:
        return self._i_thread


class ShardWorkerLauncher:
    def launch(self, in_queue, out_queue, i_thread: int) -> None:
        shard_worker(in_queue, out_queue, i_thread)


def shard_worker(in_queue, out_queue, i_thread: int) -> None:
    while True:
        message: MessageToWorker = out_queue.get()
        if message.kind == "shard":
            shard = message.payload
            try:
                accumulator = MeanVarianceAccumulator.from_array(shard.values, shard.weights)
            except Exception as exc:
                in_queue.put(MessageToCentral(i_thread, error=f"{type(exc).__name__}: {exc}"))
                continue
            in_queue.put(MessageToCentral(i_thread, accumulator=accumulator))
        elif message.kind == "shutdown":
            break
