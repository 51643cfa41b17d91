from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_sec: float = 0.05
    backoff_multiplier: float = 2.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def run(
        self,
        func: Callable[..., T],
        *args: Any,
        sleep: Callable[[float], None] = time.sleep,
        **kwargs: Any,
    ) -> T:
        """Call `func`, retrying on `retry_on` with exponential backoff.

        The last exception is re-raised once attempts are exhausted.
        """
        attempts = max(1, int(self.max_attempts))
        delay = max(0.0, float(self.backoff_sec))
        attempt = 1
        while True:
            try:
                return func(*args, **kwargs)
            except self.retry_on as exc:
                logger.warning(
                    "retry attempt=%s/%s func=%s error=%s",
                    attempt,
                    attempts,
                    getattr(func, "__name__", repr(func)),
                    exc,
                )
                if attempt >= attempts:
                    raise
            if delay > 0:
                sleep(delay)
                delay *= self.backoff_multiplier
            attempt += 1
