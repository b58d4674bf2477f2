"""
Graceful Degradation Utilities

Settle-all join for parallel source calls: every task runs to completion or
to its own timeout, and failures are returned as data instead of raised.

Features:
- Per-task timeout that never cancels sibling tasks
- Results reported in submission order, not completion order

Usage:
    from src.utils.graceful_degradation import (
        execute_with_degradation,
        DegradationConfig,
    )

    results = await execute_with_degradation(
        tasks=[adapter_a.fetch(query), adapter_b.fetch(query)],
        config=DegradationConfig(task_timeout=10.0),
        task_names=["marketaux", "finnhub"],
    )

    for task_result in results.all_results:
        ...
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Coroutine,
    Generic,
    List,
    Optional,
    TypeVar,
    Union,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DegradationConfig:
    """Configuration for graceful degradation"""

    log_failures: bool = True

    # Timeout for individual tasks (seconds); None disables it
    task_timeout: Optional[float] = 10.0


@dataclass
class TaskResult(Generic[T]):
    """Result of a single task in degradation context"""

    index: int
    success: bool
    result: Optional[T] = None
    error: Optional[BaseException] = None
    task_name: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, asyncio.TimeoutError)


@dataclass
class DegradationResult(Generic[T]):
    """Result of graceful degradation execution"""

    # All results in submission order
    all_results: List[TaskResult[T]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for tr in self.all_results if tr.success)


async def execute_with_degradation(
    tasks: List[Union[Coroutine[Any, Any, T], Callable[[], Coroutine[Any, Any, T]]]],
    config: Optional[DegradationConfig] = None,
    task_names: Optional[List[str]] = None,
) -> DegradationResult[T]:
    """
    Execute multiple async tasks concurrently and wait for all of them to settle.

    Args:
        tasks: Coroutines or zero-argument async callables
        config: Degradation configuration
        task_names: Optional names for tasks (for logging and reporting)

    Returns:
        DegradationResult whose all_results follow the order of ``tasks``
    """
    config = config or DegradationConfig()
    task_names = list(task_names or [])
    while len(task_names) < len(tasks):
        task_names.append(f"task_{len(task_names)}")

    async def execute_single(
        index: int,
        task: Union[Coroutine, Callable],
        name: str,
    ) -> TaskResult[T]:
        start_time = time.monotonic()

        try:
            coro = task() if callable(task) and not asyncio.iscoroutine(task) else task

            if config.task_timeout:
                result = await asyncio.wait_for(coro, timeout=config.task_timeout)
            else:
                result = await coro

            return TaskResult(
                index=index,
                success=True,
                result=result,
                task_name=name,
                elapsed_ms=(time.monotonic() - start_time) * 1000,
            )

        except asyncio.TimeoutError as e:
            if config.log_failures:
                logger.warning(f"[DEGRADATION] Task '{name}' timed out after {config.task_timeout}s")
            return TaskResult(
                index=index,
                success=False,
                error=e,
                task_name=name,
                elapsed_ms=(time.monotonic() - start_time) * 1000,
            )

        except Exception as e:
            if config.log_failures:
                logger.warning(f"[DEGRADATION] Task '{name}' failed: {e}")
            return TaskResult(
                index=index,
                success=False,
                error=e,
                task_name=name,
                elapsed_ms=(time.monotonic() - start_time) * 1000,
            )

    task_results: List[TaskResult[T]] = list(
        await asyncio.gather(
            *[execute_single(i, task, task_names[i]) for i, task in enumerate(tasks)]
        )
    )

    outcome = DegradationResult(all_results=task_results)
    logger.info(f"[DEGRADATION] Completed: {outcome.success_count}/{len(task_results)} succeeded")
    return outcome
