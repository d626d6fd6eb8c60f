"""
Bounded retry with graceful acceptance.

A measured call is repeated until its validator accepts the value or the
attempt budget runs out. On exhaustion the policy either keeps the last raw
value (degraded result) or gives up with None.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from ..targets.base import ValidationMismatch, InvalidResultShape

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a validator may raise to request another attempt
RECOVERABLE_ERRORS = (ValidationMismatch, InvalidResultShape)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy for one measured call.

    Attributes:
        max_attempts: Total attempts including the first one
        pause: Seconds to wait between attempts
        accept_on_exhaustion: Keep the last value when every attempt fails validation
    """
    max_attempts: int = 3
    pause: float = 0.5
    accept_on_exhaustion: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of a retried call."""
    value: Optional[T]
    attempts: int
    validated: bool


async def run_with_retry(
    call: Callable[[], Awaitable[Any]],
    validate: Callable[[Any], Awaitable[T]],
    policy: RetryPolicy,
    label: str = "call",
) -> RetryOutcome:
    """
    Run ``call`` until ``validate`` accepts its value.

    Args:
        call: Coroutine function producing a raw value
        validate: Coroutine function returning the accepted value, or raising
            ValidationMismatch / InvalidResultShape to retry
        policy: Retry policy
        label: Log prefix

    Returns:
        RetryOutcome with the accepted (or degraded) value
    """
    value = None

    for attempt in range(1, policy.max_attempts + 1):
        logger.debug(f"{label}: attempt {attempt}/{policy.max_attempts}")
        value = await call()

        try:
            accepted = await validate(value)
            return RetryOutcome(value=accepted, attempts=attempt, validated=True)
        except RECOVERABLE_ERRORS as e:
            logger.warning(f"{label}: attempt {attempt} rejected: {e}")

        if attempt < policy.max_attempts:
            await asyncio.sleep(policy.pause)

    if policy.accept_on_exhaustion:
        logger.error(
            f"{label}: failed validation after {policy.max_attempts} attempts, "
            f"recording raw result anyway"
        )
        return RetryOutcome(value=value, attempts=policy.max_attempts, validated=False)

    logger.error(f"{label}: no valid result after {policy.max_attempts} attempts")
    return RetryOutcome(value=None, attempts=policy.max_attempts, validated=False)
