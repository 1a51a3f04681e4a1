import asyncio
import functools
import logging
import time

logger = logging.getLogger(__name__)


class Profiler:
    """
    Provides a decorator to profile synchronous and asynchronous methods,
    logging their execution times at debug level.
    """

    @staticmethod
    def profile(func):
        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    elapsed = time.perf_counter() - start
                    logger.debug(f"[Profiler] {func.__qualname__} took {elapsed:.4f}s")

            return async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    elapsed = time.perf_counter() - start
                    logger.debug(f"[Profiler] {func.__qualname__} took {elapsed:.4f}s")

            return sync_wrapper
