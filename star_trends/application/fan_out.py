"""Fail-fast concurrent fan-out over independent fetch units."""

import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from star_trends.application.cancellation import CancelToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unit = Callable[[CancelToken], T]

DEFAULT_MAX_WORKERS = 16


@dataclass(frozen=True)
class _Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[BaseException] = None


class FanOut:
    """
    Runs one unit of work per item concurrently and gathers their results.

    Units receive a token shared by the whole group. The first failing unit
    cancels that token, units that have not started are dropped, and the
    failure is raised to the caller unchanged. Workers hand results over a
    bounded queue and give up publishing as soon as the group is cancelled,
    so no worker can block on a collector that already left. run() never
    returns before every worker has terminated.
    """

    POLL_SECONDS = 0.05

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, name: str = "fan-out"):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.name = name

    def run(self, units: Sequence[Unit], token: Optional[CancelToken] = None) -> List[Any]:
        """
        Execute units concurrently.

        Args:
            units: Callables taking the group's cancel token
            token: Caller token; cancelling it aborts the whole group

        Returns:
            Unit results in completion order

        Raises:
            The first unit failure, or CancelledError if token is cancelled
        """
        if not units:
            return []

        parent = token or CancelToken()
        parent.raise_if_cancelled()
        group = parent.child()
        results: "queue.Queue[_Outcome]" = queue.Queue(maxsize=1)
        collected: List[Any] = []

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(units)),
            thread_name_prefix=self.name,
        )
        try:
            for unit in units:
                executor.submit(self._run_unit, unit, group, results)

            remaining = len(units)
            while remaining:
                outcome = self._next_outcome(results, group)
                remaining -= 1
                if outcome.error is not None:
                    group.cancel(f"{type(outcome.error).__name__}: {outcome.error}")
                    raise outcome.error
                collected.append(outcome.value)
        except BaseException:
            group.cancel("aggregation aborted")
            executor.shutdown(wait=True, cancel_futures=True)
            raise

        executor.shutdown(wait=True)
        logger.debug(f"{self.name}: collected {len(collected)} results from {len(units)} units")
        return collected

    def _next_outcome(self, results: "queue.Queue[_Outcome]", group: CancelToken) -> _Outcome:
        while True:
            try:
                return results.get(timeout=self.POLL_SECONDS)
            except queue.Empty:
                group.raise_if_cancelled()

    def _run_unit(self, unit: Unit, group: CancelToken, results: "queue.Queue[_Outcome]") -> None:
        if group.cancelled:
            return
        try:
            outcome = _Outcome(value=unit(group))
        except Exception as e:
            outcome = _Outcome(error=e)
        self._publish(results, outcome, group)

    def _publish(self, results: "queue.Queue[_Outcome]", outcome: _Outcome, group: CancelToken) -> bool:
        while not group.cancelled:
            try:
                results.put(outcome, timeout=self.POLL_SECONDS)
                return True
            except queue.Full:
                continue
        logger.debug(f"{self.name}: group cancelled, abandoning unit result")
        return False
