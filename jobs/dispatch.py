import logging

logger = logging.getLogger(__name__)


def enqueue_best_effort(job_func, *args) -> bool:
    """
    Queue ``job_func`` on its rq queue without letting a broker outage
    fail the request that triggered it.
    """
    try:
        job_func.delay(*args)
        return True
    except Exception as e:
        logger.warning(
            "Could not enqueue %s%r: %s",
            getattr(job_func, "__name__", job_func),
            args,
            str(e),
        )
        return False
