"""Concurrent execution of independent fetch operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

log = logging.getLogger(__name__)

type FetchOperation[T] = Callable[[], Awaitable[T]]


async def gather_in_order[T](operations: Sequence[FetchOperation[T]]) -> list[T]:
    """Run independent operations concurrently and collect their results.

    All operations are scheduled at once inside a task group. Results are
    returned in the order of ``operations``, regardless of which operation
    finished first. When an operation fails the remaining ones are cancelled,
    and this coroutine only returns once every task has stopped.

    Args:
        operations: Zero-argument coroutine functions without dependencies
            between each other

    Returns:
        Results, index-aligned with ``operations``

    Raises:
        Exception: The error of the first failed operation in list order

    """
    tasks: list[asyncio.Task[T]] = []
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(operation()) for operation in operations]
    except BaseExceptionGroup as errors:
        raise _first_error(tasks, errors) from None

    return [task.result() for task in tasks]


def _first_error[T](
    tasks: Sequence[asyncio.Task[T]], errors: BaseExceptionGroup[BaseException]
) -> BaseException:
    """Pick the error of the lowest-index failed task."""
    for index, task in enumerate(tasks):
        if task.cancelled():
            continue
        if (error := task.exception()) is not None:
            cancelled = sum(1 for t in tasks if t.cancelled())
            log.debug(
                "Operation %d of %d failed, %d sibling(s) cancelled",
                index + 1,
                len(tasks),
                cancelled,
            )
            return error
    return errors
