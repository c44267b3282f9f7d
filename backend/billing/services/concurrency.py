# Overview: Bounded retry for store-level conflicts during invoice commits.

from __future__ import annotations

import time
from typing import Callable, TypeVar

from ..errors import InvoiceNumberConflict

T = TypeVar("T")


def run_with_retry(
    func: Callable[[], T],
    *,
    attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = (InvoiceNumberConflict,),
    backoff_base: float = 0.0,
    on_retry: Callable[[BaseException, int], None] | None = None,
) -> T:
    """
    Execute func, retrying on the given conflict errors.

    Only conflicts are retried: a failed non-idempotent append for any
    other reason could have half-succeeded, so it propagates at once.
    The last conflict is re-raised once attempts run out.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            if attempt >= attempts - 1:
                raise
            if on_retry is not None:
                on_retry(exc, attempt + 1)
            if backoff_base:
                time.sleep(backoff_base * (2 ** attempt))
    raise AssertionError("unreachable")
