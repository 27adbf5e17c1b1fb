"""
Retry controller around (prompt → LLM → parse).

Failure policy:
    - an attempt that raises is recorded, followed by a fixed pause
      (skipped after the final attempt);
    - an attempt whose output fails to parse moves straight on;
    - when attempts run out and any of them raised, the caller gets
      ``UpstreamUnavailableError`` (HTTP 503);
    - when attempts run out on unparseable output only, the operation's
      fallback value is returned instead.
"""

import logging
import time
from typing import Any, Callable, NamedTuple

from ideaforge.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_DELAY_SECONDS = 1.0


class RetryOutcome(NamedTuple):
    value: Any
    degraded: bool
    attempts: int


class RetryController:
    """
    Bounded retry loop with a fixed backoff and a static fallback.

    Args:
        gateway: Object with ``call_llm(prompt) -> str``.
        max_attempts: Total LLM calls allowed per operation.
        delay_seconds: Pause after an attempt that raised.
        sleep: Injected for tests; defaults to ``time.sleep``.
    """

    def __init__(self, gateway, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 delay_seconds: float = DEFAULT_DELAY_SECONDS,
                 sleep: Callable[[float], None] | None = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.gateway = gateway
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep or time.sleep

    def attempt(self, prompt_builder: Callable[[], str], parser: Callable[[str], Any],
                fallback: Callable[[], Any], *, operation: str = "generation") -> RetryOutcome:
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            prompt = prompt_builder()
            try:
                raw = self.gateway.call_llm(prompt)
            except Exception as e:
                last_error = e
                logger.warning("%s: LLM attempt %d/%d raised: %s",
                               operation, attempt, self.max_attempts, e,
                               extra={"operation": operation, "attempt": attempt})
                if attempt < self.max_attempts and self.delay_seconds > 0:
                    self._sleep(self.delay_seconds)
                continue

            parsed = parser(raw)
            if parsed is not None:
                return RetryOutcome(parsed, False, attempt)
            logger.warning("%s: LLM attempt %d/%d returned an invalid shape",
                           operation, attempt, self.max_attempts,
                           extra={"operation": operation, "attempt": attempt})

        if last_error is not None:
            logger.error("%s: all %d LLM attempts failed; last error: %s",
                         operation, self.max_attempts, last_error)
            raise UpstreamUnavailableError() from last_error

        logger.warning("%s: no valid response after %d attempts, using fallback",
                       operation, self.max_attempts)
        return RetryOutcome(fallback(), True, self.max_attempts)
