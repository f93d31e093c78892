# Decorators for API client functions
import time
import logging
import requests
import functools

logger = logging.getLogger(__name__)


def _url_snippet(func, args, kwargs):
    """Finds the first URL-looking argument for log messages."""
    url_to_log = kwargs.get('url')
    if not url_to_log:
        for value in list(args) + [v for k, v in kwargs.items() if k != 'config']:
            if isinstance(value, str) and (value.startswith('http') or value.startswith('/')):
                url_to_log = value
                break
    if url_to_log:
        return f"for {url_to_log[:80]}"
    return f"in {func.__name__}"


def _retry_after_seconds(response):
    """Returns the numeric Retry-After header value, or None."""
    if response is None:
        return None
    value = getattr(response, 'headers', {}).get('Retry-After')
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None # HTTP-date form is not worth parsing here


def retry_request(max_retries_key="max_retries", delay_key="request_delay_seconds", non_retryable_status=(404,), return_on_failure=None):
    """
    Decorator to add retry logic with exponential backoff to functions making HTTP requests.
    Assumes the wrapped function:
    - Makes a single primary `requests` call.
    - Accepts a 'config' dictionary keyword argument (`config=...`) containing keys
      specified by `max_retries_key` and `delay_key`.
    - Returns its result on success, or raises `requests.exceptions.HTTPError` for
      statuses that should be retried (429, 5xx).

    429 and 5xx responses, timeouts and connection errors are retried; a numeric
    Retry-After header on a 429 overrides the computed backoff. Anything else
    returns `return_on_failure` without retrying.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            config = kwargs.get('config')
            if not isinstance(config, dict):
                logger.error(
                    f"Decorator @retry_request requires 'config' dictionary as a keyword argument "
                    f"for function {func.__name__}. Retries disabled."
                )
                config = {max_retries_key: 0, delay_key: 0}

            max_retries = config.get(max_retries_key, 3)
            delay = config.get(delay_key, 1)
            log_url_snippet = _url_snippet(func, args, kwargs)

            retries = 0
            last_exception = None
            wait_override = None

            while True:
                if retries > 0:
                    wait_time = wait_override if wait_override is not None else (2 ** (retries - 1)) * delay
                    logger.warning(f"Retrying request {log_url_snippet} ({retries}/{max_retries}) after {wait_time:.2f} seconds...")
                    time.sleep(wait_time)
                wait_override = None

                try:
                    return func(*args, **kwargs)

                except requests.exceptions.HTTPError as e:
                    last_exception = e
                    response = getattr(e, 'response', None)
                    status_code = response.status_code if response is not None else None

                    if status_code in non_retryable_status:
                        logger.warning(f"HTTP error {status_code} {log_url_snippet} is non-retryable. Failing.")
                        return return_on_failure

                    if status_code and (status_code == 429 or status_code >= 500):
                        if retries < max_retries:
                            if status_code == 429:
                                wait_override = _retry_after_seconds(response)
                            logger.warning(f"Retryable HTTP error {status_code} {log_url_snippet}. Retrying ({retries + 1}/{max_retries})...")
                            retries += 1
                            continue
                        logger.warning(f"Retryable HTTP error {status_code} {log_url_snippet}. Max retries ({max_retries}) reached.")
                        break

                    logger.error(f"Unhandled HTTP error ({status_code or 'no status code'}) encountered {log_url_snippet}: {e}")
                    return return_on_failure

                except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                    last_exception = e
                    exc_type = type(e).__name__
                    if retries < max_retries:
                        logger.warning(f"{exc_type} occurred {log_url_snippet}. Retrying ({retries + 1}/{max_retries})...")
                        retries += 1
                        continue
                    logger.warning(f"{exc_type} occurred {log_url_snippet}. Max retries ({max_retries}) reached.")
                    break

                except requests.exceptions.RequestException as e:
                    logger.error(f"Unhandled RequestException {log_url_snippet}: {e}")
                    return return_on_failure

            logger.error(f"Request failed {log_url_snippet} after {max_retries} retries. Last exception: {last_exception}")
            return return_on_failure

        return wrapper
    return decorator
