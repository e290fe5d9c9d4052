"""Bounded invocation of registry-bound capabilities."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Optional, Type

from config.registry import get_model
from config.settings import settings
from screening.errors import CapabilityUnavailable

logger = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(max_workers=8, thread_name_prefix="capability")


def invoke(
    key: str,
    *,
    error_cls: Type[CapabilityUnavailable],
    timeout_s: Optional[float] = None,
    **kwargs: Any,
) -> Any:
    """Run the callable bound to ``key`` once, waiting at most ``timeout_s``.

    Raises:
        CapabilityUnavailable: ``error_cls`` when the key is unbound, the call
            raises, or the deadline passes. A timed-out call is abandoned, not retried.
    """

    try:
        fn = get_model(key)
    except KeyError as exc:
        raise error_cls(f"{key} is not bound") from exc

    deadline = timeout_s if timeout_s is not None else settings.CAPABILITY_TIMEOUT_S
    future = _EXECUTOR.submit(fn, **kwargs)
    try:
        return future.result(timeout=deadline)
    except FutureTimeout as exc:
        future.cancel()
        logger.warning("Capability %s timed out after %.1fs", key, deadline)
        raise error_cls(f"{key} timed out after {deadline:.1f}s") from exc
    except Exception as exc:  # noqa: BLE001
        logger.warning("Capability %s failed: %s", key, exc)
        raise error_cls(f"{key} failed: {exc}") from exc


__all__ = ["invoke"]
