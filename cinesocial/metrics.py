"""
Prometheus metrics for cinesocial.

Covers HTTP traffic, TMDB calls, metadata cache effectiveness and the
outcome of like/watched/watchlist/review writes.
"""

from functools import wraps
import time

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from cinesocial.logging_config import get_logger

logger = get_logger(__name__)


http_requests_total = Counter(
    'cinesocial_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'cinesocial_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

external_api_calls_total = Counter(
    'cinesocial_external_api_calls_total',
    'Total number of external API calls',
    ['api_name', 'status']
)

external_api_duration_seconds = Histogram(
    'cinesocial_external_api_duration_seconds',
    'External API call duration in seconds',
    ['api_name']
)

cache_hits_total = Counter(
    'cinesocial_cache_hits_total',
    'Total number of cache hits',
    ['cache_type']
)

cache_misses_total = Counter(
    'cinesocial_cache_misses_total',
    'Total number of cache misses',
    ['cache_type']
)

activity_writes_total = Counter(
    'cinesocial_activity_writes_total',
    'Like/watched/watchlist/review write outcomes',
    ['kind', 'result']  # created, duplicate, removed, updated
)


def track_external_api_call(api_name):
    """
    Decorator to track external API call metrics.

    A call counts as an error when it raises or returns None.

    Usage:
        @track_external_api_call('tmdb')
        def fetch():
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            status = 'success'
            try:
                result = func(*args, **kwargs)
                if result is None:
                    status = 'error'
                return result
            except Exception:
                status = 'error'
                raise
            finally:
                duration = time.time() - start_time
                external_api_calls_total.labels(api_name=api_name, status=status).inc()
                external_api_duration_seconds.labels(api_name=api_name).observe(duration)
                logger.info(
                    "external_api_call",
                    api_name=api_name,
                    status=status,
                    duration_ms=round(duration * 1000, 2)
                )
        return wrapper
    return decorator


def track_cache_operation(cache_type, hit=True):
    if hit:
        cache_hits_total.labels(cache_type=cache_type).inc()
    else:
        cache_misses_total.labels(cache_type=cache_type).inc()


def track_activity_write(kind, result):
    """
    Record the outcome of an activity write.

    Args:
        kind: 'like', 'watched', 'watchlist', 'review', 'review_like' or 'follow'
        result: 'created', 'duplicate', 'removed' or 'updated'
    """
    activity_writes_total.labels(kind=kind, result=result).inc()


def get_metrics():
    """
    Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics_text, content_type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
