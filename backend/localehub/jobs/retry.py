import functools
import logging
import time
from typing import Optional

from localehub.metrics import JOB_DURATION, JOB_FAILURE, JOB_SUCCESS
from localehub.utils.retry import RetryPolicy, Sleep, default_sleep

logger = logging.getLogger(__name__)


def retry(max_attempts: int = 3, base_delay: float = 1.0, max_delay: float = 60.0, sleep: Optional[Sleep] = None):
    """Retry a scheduled job on any exception, with backoff and job metrics.

    The last failure is logged and counted, never re-raised, so one bad run
    does not kill the scheduler.
    """
    policy = RetryPolicy(max_retries=max_attempts - 1, base_delay=base_delay, max_delay=max_delay)

    def decorator(func):
        job_name = func.__name__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.monotonic()
            for attempt in range(1, max_attempts + 1):
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    if attempt == max_attempts:
                        logger.exception(f"Job {job_name} failed after {max_attempts} attempts: {e}")
                        break
                    delay = policy.delay_for(attempt)
                    logger.warning(f"Job {job_name} failed (attempt {attempt}/{max_attempts}): {e}. Retrying in {delay:.1f}s")
                    await (sleep or default_sleep)(delay)
                else:
                    JOB_DURATION.labels(job_name=job_name).observe(time.monotonic() - start_time)
                    JOB_SUCCESS.labels(job_name=job_name).inc()
                    return result

            JOB_DURATION.labels(job_name=job_name).observe(time.monotonic() - start_time)
            JOB_FAILURE.labels(job_name=job_name).inc()
            return None
        return wrapper
    return decorator
