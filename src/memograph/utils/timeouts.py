from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, TypeVar

from memograph.errors import ExternalCapabilityError


T = TypeVar("T")


def call_with_timeout(
    fn: Callable[[], T],
    *,
    capability: str,
    timeout_s: float,
) -> T:
    """
    Run an external capability call bounded by a timeout.

    Any failure, including the timeout itself, surfaces as
    ExternalCapabilityError. A timeout of 0 disables the bound.
    The worker thread is abandoned on timeout, never joined.
    """
    if timeout_s <= 0:
        try:
            return fn()
        except ExternalCapabilityError:
            raise
        except Exception as exc:
            raise ExternalCapabilityError(capability, str(exc) or type(exc).__name__) from exc

    executor = ThreadPoolExecutor(max_workers=1)
    try:
        fut = executor.submit(fn)
        try:
            return fut.result(timeout=timeout_s)
        except FutureTimeout as exc:
            logging.getLogger("memograph.capability").warning(
                "%s timed out after %.1fs",
                capability,
                timeout_s,
            )
            raise ExternalCapabilityError(
                capability, f"timed out after {timeout_s:g}s"
            ) from exc
        except ExternalCapabilityError:
            raise
        except Exception as exc:
            raise ExternalCapabilityError(capability, str(exc) or type(exc).__name__) from exc
    finally:
        executor.shutdown(wait=False)
