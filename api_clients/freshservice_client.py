# Module for talking to the Freshservice Solutions API (v2)

import json
import logging
import time
from urllib.parse import urlparse

import requests

import constants
from .decorators import retry_request

logger = logging.getLogger(__name__)


def _auth(config):
    return (config['api_key'], constants.API_PASSWORD)


def _headers(config):
    return {
        'User-Agent': config.get('user_agent', constants.DEFAULT_USER_AGENT),
        'Content-Type': 'application/json',
    }


def _raise_for_retryable(response, url):
    """Raises HTTPError for 429/5xx so the decorator retries; other errors are returned as False."""
    if response.status_code == 429 or response.status_code >= 500:
        logger.warning(f"Request to {url} failed with status {response.status_code}. Decorator will handle retry.")
        response.raise_for_status()


# --- Paginated Listing ---
@retry_request(non_retryable_status=[401, 403, 404])
def fetch_page(endpoint, result_key, page, config):
    """
    Fetches one page of a collection endpoint.
    Returns the list found under `result_key` (empty when the key is missing
    or null) or None on failure.
    """
    url = f"{config['api_base_url']}{endpoint}"
    params = {'per_page': config.get('per_page', constants.DEFAULT_PER_PAGE), 'page': page}
    timeout = config.get('request_timeout_api', constants.DEFAULT_TIMEOUT_API)

    logger.debug(f"GET {url} page={page}")
    response = requests.get(url, params=params, auth=_auth(config), headers=_headers(config), timeout=timeout)
    try:
        if response.status_code == 200:
            try:
                body = response.json()
            except (json.JSONDecodeError, ValueError):
                logger.error(f"Could not parse JSON from {url} (page {page}). Response text: {response.text[:500]}")
                return None
            if not isinstance(body, dict):
                logger.error(f"Unexpected response envelope from {url} (page {page}): {type(body).__name__}")
                return None
            items = body.get(result_key)
            if items is None:
                return []
            if not isinstance(items, list):
                logger.error(f"Key '{result_key}' in response from {url} is not a list.")
                return None
            return items

        _raise_for_retryable(response, url)
        logger.error(f"API returned HTTP {response.status_code} for {url} (page {page}). Response: {response.text[:500]}")
        return None
    finally:
        response.close()


def fetch_all(endpoint, result_key, config):
    """
    Collects every item of a paginated collection endpoint, in order.

    Stops on an empty page or one shorter than `per_page`. Returns None when any
    page fails, so callers can tell an outage apart from an empty collection.
    """
    per_page = config.get('per_page', constants.DEFAULT_PER_PAGE)
    delay = config.get('request_delay_seconds', constants.DEFAULT_REQUEST_DELAY)
    all_items = []
    page = 1

    while True:
        items = fetch_page(endpoint, result_key, page, config=config)
        if items is None:
            logger.error(f"Fetching '{result_key}' from {endpoint} failed on page {page}.")
            return None
        if not items:
            break
        all_items.extend(items)
        if len(items) < per_page:
            break
        page += 1
        time.sleep(delay)

    logger.debug(f"Fetched {len(all_items)} '{result_key}' item(s) from {endpoint} in {page} page(s).")
    return all_items


# --- Single Resources ---
@retry_request(non_retryable_status=[401, 403, 404])
def fetch_article(article_id, config):
    """Fetches the full article (including its HTML body). Returns a dict or None."""
    url = f"{config['api_base_url']}{constants.ARTICLE_DETAIL_ENDPOINT.format(article_id=article_id)}"
    timeout = config.get('request_timeout_api', constants.DEFAULT_TIMEOUT_API)

    response = requests.get(url, auth=_auth(config), headers=_headers(config), timeout=timeout)
    try:
        if response.status_code == 200:
            try:
                body = response.json()
            except (json.JSONDecodeError, ValueError):
                logger.error(f"Could not parse JSON for article {article_id} from {url}.")
                return None
            if isinstance(body, dict) and isinstance(body.get('article'), dict):
                return body['article']
            if isinstance(body, dict):
                return body
            logger.error(f"Unexpected article response for {article_id}: {type(body).__name__}")
            return None

        _raise_for_retryable(response, url)
        logger.error(f"API returned HTTP {response.status_code} for article {article_id}.")
        return None
    finally:
        response.close()


def _is_helpdesk_url(url, config):
    host = urlparse(url).hostname or ''
    return host.lower() == config.get('helpdesk_host', '').lower()


@retry_request(non_retryable_status=[401, 403, 404])
def fetch_asset(url, config):
    """
    Downloads an embedded image or attachment. Credentials are only sent to the
    helpdesk's own host. Returns the content as bytes or None on failure.
    """
    timeout = config.get('request_timeout_content', constants.DEFAULT_TIMEOUT_CONTENT)
    auth = _auth(config) if _is_helpdesk_url(url, config) else None
    headers = {'User-Agent': config.get('user_agent', constants.DEFAULT_USER_AGENT)}

    response = requests.get(url, auth=auth, headers=headers, timeout=timeout, allow_redirects=True)
    try:
        if response.status_code == 200:
            content = response.content
            if not content:
                logger.warning(f"Fetched empty asset content from {url}.")
                return None
            return content

        _raise_for_retryable(response, url)
        logger.warning(f"Asset request failed with status {response.status_code}: {url}")
        return None
    finally:
        response.close()
