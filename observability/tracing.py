"""Span helper for recording turn timings on a session."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def span(session, name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        session.events.append({"span": name, "ms": elapsed_ms})


__all__ = ["span"]
