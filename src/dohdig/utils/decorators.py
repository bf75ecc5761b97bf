"""Decorators for error handling and monitoring."""

import asyncio
import functools
import logging
from typing import Callable, TypeVar

import sentry_sdk

from dohdig.core.config import get_settings
from dohdig.utils.exceptions import capture_exception

F = TypeVar("F", bound=Callable)

logger = logging.getLogger(__name__)


def sentry_exception_catcher(func: F) -> F:
    """
    Decorator that reports exceptions escaping ``func`` and re-raises them.

    Works with both sync and async functions. The exception is logged with
    the wrapped function's name and forwarded to Sentry when SENTRY_DSN is set.
    """
    context = {"function": func.__qualname__}

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            capture_exception(e, context)
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            capture_exception(e, context)
            raise

    if asyncio.iscoroutinefunction(func):
        return async_wrapper  # type: ignore
    return sync_wrapper  # type: ignore


def init_sentry() -> bool:
    """Initialize Sentry SDK if configured. Returns True when enabled."""
    settings = get_settings()

    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )
    logger.debug("Sentry enabled (environment=%s)", settings.sentry_environment)

    return True
