"""
UtilityHub API — Bounded Retry for Upstream Calls
===================================================

What:  The one retry loop every vendor client shares.
Why:   Each proxy endpoint needs the same behavior around its single outbound
       call: retry the vendor's overload signal with exponential backoff, fail
       immediately on anything definitive, never exceed a fixed attempt cap.
How:   Tenacity's AsyncRetrying, parameterized by the call to perform, a
       classifier mapping a result to SUCCESS / RETRY / FATAL, and a RetryPolicy.
Who:   GeminiService and RemoveBgService.

State Machine:
    Attempt(n), n = 0..max_retries, strictly sequential.
        result classified SUCCESS → return it
        result classified FATAL   → return it (caller raises the vendor error)
        result classified RETRY   → sleep base_delay * 2^n, go to Attempt(n+1)
                                    or raise UpstreamOverloadError at the cap
        transport error           → same as RETRY when the policy allows it,
                                    otherwise UpstreamUnavailableError at once
        timeout                   → UpstreamTimeoutError at once
        anything else             → propagates unchanged
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Iterable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from utilityhub.exceptions import (
    UpstreamOverloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class Verdict(enum.Enum):
    """Classification of one attempt's result."""

    SUCCESS = "success"
    RETRY = "retry"
    FATAL = "fatal"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry parameters for one outbound call.

    Attributes:
        max_retries: Extra attempts after the first one (total = max_retries + 1)
        base_delay: Seconds to wait before the first retry; doubles every retry
        max_delay: Upper bound for a single wait
        retry_on_transport_errors: Whether connection failures are retried like
            an overload signal or end the request on first occurrence
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    retry_on_transport_errors: bool = True

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            retry_on_transport_errors=settings.retry_on_transport_errors,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def single_attempt(self) -> "RetryPolicy":
        """Same policy without retries (for request bodies that cannot be replayed)."""
        return replace(self, max_retries=0)

    def delay_for(self, retry_number: int) -> float:
        """Wait before attempt retry_number + 1, where retry_number starts at 0."""
        return min(self.max_delay, self.base_delay * (2 ** retry_number))


def status_classifier(overload_statuses: Iterable[int] = (503,)) -> Callable[[httpx.Response], Verdict]:
    """
    Build a classifier for HTTP responses.

    2xx → SUCCESS, any status in overload_statuses → RETRY, everything else → FATAL.
    """
    overload = frozenset(overload_statuses)

    def classify(response: httpx.Response) -> Verdict:
        if response.is_success:
            return Verdict.SUCCESS
        if response.status_code in overload:
            return Verdict.RETRY
        return Verdict.FATAL

    return classify


def _is_retryable_transport_error(exc: BaseException) -> bool:
    # Timeouts are converted to UpstreamTimeoutError before tenacity sees them
    return isinstance(exc, httpx.TransportError)


def _log_attempt(description: str, policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        logger.info(
            "%s: attempt %d/%d",
            description,
            retry_state.attempt_number,
            policy.max_attempts,
        )

    return log


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    classify: Callable[[T], Verdict],
    policy: RetryPolicy,
    *,
    sleep: Sleep = asyncio.sleep,
    description: str = "upstream call",
    overload_message: str = "ERROR: The service is overloaded. Please try again later.",
    unavailable_message: str = "ERROR: Could not reach the upstream service. Please try again later.",
    timeout_message: str = "ERROR: The analysis took too long. Please try again.",
) -> T:
    """
    Run operation until its result is not retryable or the attempt cap is reached.

    Args:
        operation: Zero-argument coroutine factory performing one outbound call.
        classify: Maps a result to SUCCESS, RETRY or FATAL.
        policy: Attempt cap, backoff base/ceiling and transport-error policy.
        sleep: Awaitable used for the backoff wait (replaced in tests).
        description: Label used in log lines.

    Returns:
        The first result classified SUCCESS or FATAL. Callers translate FATAL
        results into their own vendor error.

    Raises:
        UpstreamOverloadError: Every attempt was classified RETRY.
        UpstreamUnavailableError: Transport failures exhausted the cap, or the
            policy does not retry them.
        UpstreamTimeoutError: An attempt exceeded its deadline.
    """

    async def attempt() -> T:
        try:
            return await operation()
        except httpx.TimeoutException as exc:
            logger.warning("%s timed out: %s", description, exc)
            raise UpstreamTimeoutError(
                message=timeout_message,
                context={"description": description, "error_type": type(exc).__name__},
            ) from exc

    retry_condition = retry_if_result(lambda result: classify(result) is Verdict.RETRY)
    if policy.retry_on_transport_errors:
        retry_condition = retry_condition | retry_if_exception(_is_retryable_transport_error)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.base_delay, min=0, max=policy.max_delay),
        retry=retry_condition,
        before=_log_attempt(description, policy),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
    )

    try:
        return await retrying(attempt)

    except RetryError as e:
        last = e.last_attempt
        if last.failed:
            error = last.exception()
            logger.error(
                "%s unreachable after %d attempts: %s",
                description,
                last.attempt_number,
                error,
            )
            raise UpstreamUnavailableError(
                message=unavailable_message,
                attempts=last.attempt_number,
                context={"description": description, "error_type": type(error).__name__},
            ) from error

        status = getattr(last.result(), "status_code", None)
        logger.error(
            "%s still overloaded after %d attempts (last status %s)",
            description,
            last.attempt_number,
            status,
        )
        raise UpstreamOverloadError(
            message=overload_message,
            attempts=last.attempt_number,
            context={"description": description, "upstream_status": status},
        )

    except httpx.TransportError as e:
        # Only reached when the policy does not retry transport errors
        attempts = retrying.statistics.get("attempt_number", 1)
        logger.error("%s failed on attempt %d: %s", description, attempts, e)
        raise UpstreamUnavailableError(
            message=unavailable_message,
            attempts=attempts,
            context={"description": description, "error_type": type(e).__name__},
        ) from e
