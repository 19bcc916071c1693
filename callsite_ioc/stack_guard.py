from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from .exceptions import InsufficientExecutionStackError

logger = logging.getLogger(__name__)

TResult = TypeVar("TResult")

DEFAULT_MAX_DEPTH_PER_STACK = 32
MAX_EXECUTION_STACK_COUNT = 1024


class StackGuard:
    """
    Bounds the recursion depth of graph building and resolution.

    Every guarded call counts one level on the calling thread. Once ``max_depth_per_stack`` levels are in use
    the call continues on a fresh worker thread and the caller blocks on its result, so exceptions surface
    unchanged.
    """

    def __init__(self, max_depth_per_stack: int = DEFAULT_MAX_DEPTH_PER_STACK):
        if max_depth_per_stack < 1:
            raise ValueError("max_depth_per_stack must be at least 1")
        self.max_depth_per_stack = max_depth_per_stack
        self._state = threading.local()

    @property
    def depth(self) -> int:
        return getattr(self._state, "depth", 0)

    @property
    def forks(self) -> int:
        return getattr(self._state, "forks", 0)

    def run(self, fn: Callable[..., TResult], *args: Any) -> TResult:
        depth = self.depth
        if depth >= self.max_depth_per_stack:
            return self._run_forked(fn, args)

        self._state.depth = depth + 1
        try:
            return fn(*args)
        finally:
            self._state.depth = depth

    def _run_forked(self, fn: Callable[..., TResult], args: tuple) -> TResult:
        forks = self.forks + 1
        if forks > MAX_EXECUTION_STACK_COUNT:
            raise InsufficientExecutionStackError()

        logger.debug("Continuing %r on a new stack (fork %d)", fn, forks)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="callsite_ioc") as executor:
            return executor.submit(self._run_on_new_stack, forks, fn, args).result()

    def _run_on_new_stack(self, forks: int, fn: Callable[..., TResult], args: tuple) -> TResult:
        self._state.forks = forks
        self._state.depth = 0
        return self.run(fn, *args)
