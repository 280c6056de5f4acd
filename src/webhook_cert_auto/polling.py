"""Bounded polling helper used while waiting on the cluster."""

import time
from collections.abc import Callable
from typing import TypeVar

from icecream import ic

from webhook_cert_auto.exceptions import SigningRequestTimeoutError
from webhook_cert_auto.models import PollPolicy

T = TypeVar("T")


def poll_until(probe: Callable[[], T | None], policy: PollPolicy, *, timeout_message: str) -> T:
    """Call ``probe`` until it returns a truthy value or the policy runs out.

    The probe is called once per attempt; sleeps only happen between
    attempts, never after the last one.

    Args:
        probe: Callable returning the awaited value, or a falsy value for "not yet".
        policy: Attempts and delays to use.
        timeout_message: Message of the error raised when every attempt failed.

    Returns:
        The first truthy value returned by the probe.

    Raises:
        SigningRequestTimeoutError: If no attempt produced a value.

    """
    delays = policy.delays()
    for attempt in range(1, policy.attempts + 1):
        result = probe()
        ic(attempt, bool(result))
        if result:
            return result
        if attempt <= len(delays):
            time.sleep(delays[attempt - 1])

    raise SigningRequestTimeoutError(timeout_message)
