"""
Timing utilities for measuring node execution time.

This module provides a simple decorator to time node execution
and print the results in a user-friendly format.  It works for both
plain functions and coroutine functions, since every pipeline node is
awaited by the LangGraph orchestrator.
"""

from __future__ import annotations

import inspect
import time
from functools import wraps
from typing import Any, Callable

from .app_config import Settings, settings


def _debug_enabled(args: tuple) -> bool:
    # Node methods carry their own settings; fall back to the global ones
    owner_settings = getattr(args[0], "settings", None) if args else None
    if isinstance(owner_settings, Settings):
        return owner_settings.debug
    return settings.debug


def time_node(node_name: str) -> Callable:
    """Decorator to time a node's execution and print the result.

    Only prints timing information when debug mode is enabled.

    Parameters
    ----------
    node_name : str
        Human-readable name of the node (e.g., "Dependency Planner")

    Returns
    -------
    Callable
        Decorated function that prints timing information
    """
    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start_time = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    if _debug_enabled(args):
                        print(f"⏱️  {node_name}: {time.perf_counter() - start_time:.2f}s")
            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                if _debug_enabled(args):
                    print(f"⏱️  {node_name}: {time.perf_counter() - start_time:.2f}s")
        return wrapper
    return decorator
