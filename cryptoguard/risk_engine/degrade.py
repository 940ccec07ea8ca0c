import inspect
import functools
from typing import Any, Callable

from ..logging_utils import get_logger

logger = get_logger(__name__)


def degradable(default: Callable[[], Any], stage: str):
    """Turn a best-effort function into one that always returns a value.

    Any exception is logged and replaced by ``default()``. Works for plain and
    ``async`` functions. Cancellation still propagates.
    """
    def wrap(fn):
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def run_async(*args, **kwargs):
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    logger.warning("%s degraded to default: %s", stage, e)
                    return default()
            return run_async

        @functools.wraps(fn)
        def run(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                logger.warning("%s degraded to default: %s", stage, e)
                return default()
        return run
    return wrap
