from __future__ import annotations

from datetime import datetime

from .accumulator import EMPTY
from .util.threads import TaskQueueObserver
from .worker import MessageToCentral


class ProgressObserver(TaskQueueObserver):
    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.start_time = datetime.now()
        self.n_shards_sent = 0
        self.n_shards_received = 0
        self.running = EMPTY

    def _print(self, text: str) -> None:
        if self.verbose:
            print(text)

    def going_to_start_queue(self) -> None:
        self.start_time = datetime.now()
        self._print("Starting to accumulate shards.")

    def going_to_send(self, out_message, i_task: int, i_thread: int) -> None:
        self.n_shards_sent += 1

    def have_received(self, in_message: MessageToCentral, i_task: int, i_thread: int) -> None:
        self.n_shards_received += 1
        if in_message.error is not None:
            self._print(f"Shard {i_task} failed on thread {i_thread}: {in_message.error}")
            return
        self.running = self.running.merge(in_message.accumulator)
        self._print(
            f"Shard {i_task} done on thread {i_thread}, "
            f"weight so far {self.running.weight_sum}, mean so far {self.running.mean}"
        )

    def nothing_more_to_send(self) -> None:
        self._print(f"No more shards to add to queue ({self.n_shards_sent} sent).")

    def completed_queue(self) -> None:
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self._print(
            f"Completed accumulation of all {self.n_shards_received} shards in {elapsed:.3f}s."
        )
