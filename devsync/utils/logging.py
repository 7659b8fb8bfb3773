from loguru import logger
import time
from functools import wraps


def timeit(label: str | None = None):
    """
    Decorator that traces how long the wrapped call took at debug level.

    Failed calls are traced too, then the exception is re-raised unchanged.
    """
    def decorator(func):
        name = label or func.__qualname__

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start
                logger.debug(f"{name} finished in {elapsed:.6f}s")
        return wrapper
    return decorator
