"""Bounded retries with exponential backoff and per-attempt timeouts."""

import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Optional, Tuple
from ..utils.errors import PermanentError, ProviderError, TransientError
from ..utils.logging import get_logger

logger = get_logger("execution.retry")


class RetryPolicy:
    """How often and how patiently a provider call is retried."""
    
    def __init__(
        self,
        max_attempts: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.timeout = timeout
        self.sleep = sleep
    
    @classmethod
    def from_settings(cls, settings, sleep: Callable[[float], None] = time.sleep) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            backoff_base=settings.backoff_base,
            backoff_max=settings.backoff_max,
            timeout=settings.action_timeout,
            sleep=sleep,
        )
    
    def delay(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (1-based)."""
        return min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)


class RetryExhausted(Exception):
    """Carries the last provider error and the number of attempts made."""
    
    def __init__(self, error: ProviderError, attempts: int):
        super().__init__(str(error))
        self.error = error
        self.attempts = attempts


def call_with_retry(policy: RetryPolicy, description: str, fn: Callable, *args) -> Tuple[Any, int]:
    """
    Call ``fn(*args)`` until it succeeds, fails permanently or attempts run out.
    
    Returns:
        Tuple of (result, attempts used)
        
    Raises:
        RetryExhausted: Wrapping the PermanentError or the last TransientError
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return _call_with_timeout(policy.timeout, description, fn, *args), attempt
        except TransientError as e:
            if attempt >= policy.max_attempts:
                logger.error(f"{description} failed after {attempt} attempts: {e}")
                raise RetryExhausted(e, attempt)
            delay = policy.delay(attempt)
            logger.warning(
                f"{description} failed (attempt {attempt}/{policy.max_attempts}): {e}; "
                f"retrying in {delay:.2f}s"
            )
            policy.sleep(delay)
        except PermanentError as e:
            logger.error(f"{description} failed permanently: {e}")
            raise RetryExhausted(e, attempt)
        except Exception as e:
            logger.error(f"{description} raised unexpected {type(e).__name__}: {e}", exc_info=True)
            raise RetryExhausted(PermanentError(f"{type(e).__name__}: {e}"), attempt)
    
    raise RetryExhausted(PermanentError("no attempts made"), 0)


def _call_with_timeout(timeout: Optional[float], description: str, fn: Callable, *args) -> Any:
    """
    Run ``fn`` and give up waiting after ``timeout`` seconds.
    
    A timed-out call keeps running in its worker thread; provider calls are
    never aborted mid-flight.
    """
    if timeout is None:
        return fn(*args)
    
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(fn, *args)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError:
        future.add_done_callback(lambda f: logger.info(f"Timed-out call {description} eventually finished"))
        raise TransientError(f"{description} timed out after {timeout}s")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
