"""Retry with exponential backoff for collaborator calls."""

import asyncio
from typing import Awaitable, Callable, TypeVar

from rich.console import Console
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import CollaboratorError

console = Console()

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, CollaboratorError) and error.retryable


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    description: str = "Collaborator call",
) -> T:
    """
    Call ``operation``, retrying retryable collaborator errors.

    The delay doubles after every failed attempt. Non-retryable errors,
    and the last error once retries are exhausted, propagate.
    """

    def report(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        console.print(
            f"[yellow]{description} failed ({error}); "
            f"retry {state.attempt_number}/{max_retries} in {delay:.1f}s[/yellow]"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=report,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(operation)
