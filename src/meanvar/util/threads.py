from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Generic, Iterable, List, Optional, Protocol, TypeVar

from ..error import new_error


class InMessage(Protocol):
    def i_thread(self) -> int:  # pragma: no cover - protocol
        ...


class TaskQueueObserver(Protocol):
    def going_to_start_queue(self) -> None: ...

    def going_to_send(self, out_message, i_task: int, i_thread: int) -> None: ...

    def have_received(self, in_message, i_task: int, i_thread: int) -> None: ...

    def nothing_more_to_send(self) -> None: ...

    def completed_queue(self) -> None: ...


I = TypeVar("I", bound=InMessage)
O = TypeVar("O")


class WorkerLauncher(Protocol[I, O]):
    def launch(self, in_queue: queue.Queue[I], out_queue: queue.Queue[O], i_thread: int) -> None:
        ...


@dataclass
class Threads(Generic[I, O]):
    in_queue: queue.Queue[I]
    out_queues: List[queue.Queue[O]]
    join_handles: List[threading.Thread]

    @classmethod
    def new(cls, launcher: WorkerLauncher[I, O], n_threads: int) -> "Threads[I, O]":
        if n_threads < 1:
            raise new_error(f"Need at least one thread, but got {n_threads}.")
        in_queue: queue.Queue[I] = queue.Queue()
        out_queues: List[queue.Queue[O]] = []
        join_handles: List[threading.Thread] = []
        for i_thread in range(n_threads):
            out_queue: queue.Queue[O] = queue.Queue()
            thread = threading.Thread(
                target=launcher.launch,
                args=(in_queue, out_queue, i_thread),
                name=f"meanvar-worker-{i_thread}",
                daemon=True,
            )
            thread.start()
            out_queues.append(out_queue)
            join_handles.append(thread)
        return cls(in_queue=in_queue, out_queues=out_queues, join_handles=join_handles)

    def n_threads(self) -> int:
        return len(self.join_handles)

    def task_queue(self, out_messages: Iterable[O], observer: TaskQueueObserver) -> list[I]:
        observer.going_to_start_queue()
        task_by_thread: list[Optional[int]] = [None] * self.n_threads()
        responses: dict[int, I] = {}
        out_iter = enumerate(out_messages)
        maybe_more_out = True

        while True:
            while maybe_more_out and None in task_by_thread:
                try:
                    i_task, out_message = next(out_iter)
                except StopIteration:
                    maybe_more_out = False
                    observer.nothing_more_to_send()
                    break
                i_thread = task_by_thread.index(None)
                observer.going_to_send(out_message, i_task, i_thread)
                self.out_queues[i_thread].put(out_message)
                task_by_thread[i_thread] = i_task

            if all(i_task is None for i_task in task_by_thread):
                break

            in_message = self.in_queue.get()
            i_thread = in_message.i_thread()
            i_task = task_by_thread[i_thread]
            if i_task is None:
                raise new_error(f"Received message from idle thread {i_thread}")
            observer.have_received(in_message, i_task, i_thread)
            task_by_thread[i_thread] = None
            responses[i_task] = in_message

        observer.completed_queue()
        return [responses[i_task] for i_task in sorted(responses)]

    def close(self, shutdown_message: O) -> None:
        for out_queue in self.out_queues:
            out_queue.put(shutdown_message)
        for join_handle in self.join_handles:
            join_handle.join(timeout=5)
