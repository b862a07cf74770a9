"""
Fork-join parallel loop over an index range.

Tasks run on a thread pool; the Numba kernels they call release the GIL.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from gwarp.settings import get_settings
from gwarp.utils.logging import get_logger, log_exception

logger = get_logger(__name__)


def parallel_for(
    n: int,
    task: Callable[[int], None],
    max_workers: int | None = None,
    thread_name_prefix: str = "gwarp",
) -> None:
    """
    Run ``task(i)`` for every ``i`` in ``range(n)``.

    No ordering between indices is guaranteed. Tasks must write only to
    their own, disjoint outputs. The call returns once every task has
    finished; if any task raised, the exception of the lowest failing index
    is re-raised and the outputs must be considered invalid.

    Args:
        n: Number of indices
        task: Work unit taking an index
        max_workers: Worker threads (None = runtime setting)
        thread_name_prefix: Prefix for worker thread names
    """
    if n <= 0:
        return

    execution = get_settings().execution
    workers = execution.resolve_workers(n, max_workers)

    if workers == 1 or n < execution.min_parallel_shots:
        for i in range(n):
            task(i)
        return

    logger.debug(f"parallel_for: {n} tasks on {workers} workers")
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=thread_name_prefix) as executor:
        futures: list[Future] = [executor.submit(task, i) for i in range(n)]

    for i, future in enumerate(futures):
        exc = future.exception()
        if exc is not None:
            log_exception(logger, exc, f"{thread_name_prefix} task {i} failed")
            raise exc
