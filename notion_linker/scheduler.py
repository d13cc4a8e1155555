"""
Retry driver and tick loop.

A tick runs the Categorizer pass, then the Linker pass. Each pass gets its
own bounded retry: a failed pass is re-run from scratch after a fixed delay.
Ticks never overlap; the loop waits for one to finish before starting the
next.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from notion_linker.config import (
    MAX_RETRIES,
    RETRY_DELAY,
    TICK_INTERVAL,
    TICK_ITERATIONS,
)
from notion_linker.errors import RemoteOperationError, RetryExhaustedError

logger = logging.getLogger(__name__)

PassFunction = Callable[[int], Optional[Dict[str, Any]]]


def run_with_retry(
    name: str,
    pass_fn: PassFunction,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep
) -> Dict[str, Any]:
    """
    Run a pass, re-running it after RemoteOperationError.

    The pass is invoked at most max_retries times in total, with retry_delay
    seconds between attempts. Other exceptions propagate immediately.

    Args:
        name: Pass name for logging
        pass_fn: Called with the 1-based attempt number
        max_retries: Total attempts allowed
        retry_delay: Seconds to wait between attempts
        sleep: Sleep function (tests pass a fake)

    Returns:
        Result dict with keys: name, succeeded, attempts, stats, error
        (error is a RetryExhaustedError when every attempt failed)
    """
    max_attempts = max(1, max_retries)
    last_error = None

    for attempt in range(1, max_attempts + 1):
        try:
            stats = pass_fn(attempt)
        except RemoteOperationError as e:
            last_error = e
            if e.retryable:
                logger.warning(f"Request to Notion API failed during {name} (attempt {attempt}/{max_attempts}): {e}")
            else:
                # Bad token, unshared database or renamed property; still retried
                logger.error(
                    f"Notion rejected a request during {name} (attempt {attempt}/{max_attempts}): {e}. "
                    "Check the integration token, database sharing and property names."
                )
            if attempt < max_attempts:
                logger.info(f"Retrying in {retry_delay:g} seconds...")
                sleep(retry_delay)
                logger.info("Retrying...")
            continue

        return {
            'name': name,
            'succeeded': True,
            'attempts': attempt,
            'stats': stats,
            'error': None,
        }

    exhausted = RetryExhaustedError(name, max_attempts, last_error)
    logger.error(f"Exceeded maximum retry attempts, giving up until next tick. {exhausted}")
    return {
        'name': name,
        'succeeded': False,
        'attempts': max_attempts,
        'stats': None,
        'error': exhausted,
    }


class Scheduler:
    """Runs the linking passes on a fixed interval."""

    def __init__(
        self,
        passes: List[Tuple[str, PassFunction]],
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        tick_interval: float = TICK_INTERVAL,
        tick_iterations: int = TICK_ITERATIONS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            passes: (name, pass function) pairs, run in order every round
            max_retries: Total attempts per pass
            retry_delay: Seconds between attempts of a pass
            tick_interval: Seconds between tick starts
            tick_iterations: Rounds of all passes per tick
            sleep: Sleep function
            clock: Monotonic clock
        """
        self.passes = passes
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.tick_interval = tick_interval
        self.tick_iterations = max(1, tick_iterations)
        self._sleep = sleep
        self._clock = clock

    def run_tick(self) -> List[Dict[str, Any]]:
        """
        Run every pass in order, tick_iterations times.

        An exception other than RemoteOperationError ends the tick early; it
        is logged and the next tick starts normally.

        Returns:
            Result dicts from run_with_retry, in execution order
        """
        results = []
        for iteration in range(1, self.tick_iterations + 1):
            try:
                for name, pass_fn in self.passes:
                    results.append(run_with_retry(
                        name,
                        pass_fn,
                        max_retries=self.max_retries,
                        retry_delay=self.retry_delay,
                        sleep=self._sleep,
                    ))
            except Exception as e:
                logger.exception(f"Unexpected error occurred in round {iteration}: {e}")
                break
        return results

    def run_forever(self, max_ticks: Optional[int] = None) -> int:
        """
        Run ticks until max_ticks is reached (forever when None).

        The next tick starts tick_interval seconds after the previous one
        started, or right away if the previous tick ran longer than that.

        Returns:
            Number of ticks run
        """
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            started = self._clock()
            ticks += 1

            logger.info("=" * 60)
            logger.info(f"TICK {ticks}")
            logger.info("=" * 60)

            results = self.run_tick()
            for result in results:
                status = 'ok' if result['succeeded'] else 'FAILED'
                logger.info(f"  {result['name']}: {status} after {result['attempts']} attempt(s)")

            if max_ticks is not None and ticks >= max_ticks:
                break

            elapsed = self._clock() - started
            wait = self.tick_interval - elapsed
            if wait > 0:
                self._sleep(wait)
            else:
                logger.warning(
                    f"Tick {ticks} took {elapsed:.1f}s, longer than the "
                    f"{self.tick_interval:g}s interval; starting the next tick now"
                )

        return ticks
