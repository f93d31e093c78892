# tests/test_freshservice_client.py

import pytest
import requests
import logging
from unittest.mock import MagicMock, patch, call

# Modules to test
from api_clients import freshservice_client


# --- Fixtures ---

def make_response(status_code=200, json_data=None, content=b"", text="", headers=None):
    """Creates a MagicMock standing in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.content = content
    response.text = text
    response.headers = headers or {}
    response.url = "http://mocked.url"
    response.close = MagicMock()
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    return response


@pytest.fixture
def config(base_config):
    base_config['per_page'] = 2
    return base_config


# --- Tests for fetch_page ---

@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_sends_auth_and_pagination(mock_get, config):
    mock_get.return_value = make_response(json_data={"categories": [{"id": 1}]})

    items = freshservice_client.fetch_page("/solutions/categories", "categories", 3, config=config)

    assert items == [{"id": 1}]
    mock_get.assert_called_once_with(
        "https://acme.freshservice.com/api/v2/solutions/categories",
        params={'per_page': 2, 'page': 3},
        auth=('secret-key', 'X'),
        headers={'User-Agent': 'TestAgent/1.0', 'Content-Type': 'application/json'},
        timeout=5,
    )
    mock_get.return_value.close.assert_called_once()


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_missing_key_is_empty(mock_get, config):
    mock_get.return_value = make_response(json_data={"other": []})
    assert freshservice_client.fetch_page("/x", "folders", 1, config=config) == []


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_unparseable_body_fails(mock_get, config, caplog):
    mock_get.return_value = make_response(text="<html>maintenance</html>")

    with caplog.at_level(logging.ERROR):
        assert freshservice_client.fetch_page("/x", "folders", 1, config=config) is None

    assert "Could not parse JSON" in caplog.text


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_client_error_fails_without_retry(mock_get, config, caplog):
    mock_get.return_value = make_response(status_code=401, text="unauthorized")

    assert freshservice_client.fetch_page("/x", "folders", 1, config=config) is None
    assert mock_get.call_count == 1
    assert "API returned HTTP 401" in caplog.text


@patch('api_clients.decorators.time.sleep')
@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_retries_rate_limit_with_retry_after(mock_get, mock_sleep, config):
    mock_get.side_effect = [
        make_response(status_code=429, headers={'Retry-After': '7'}),
        make_response(json_data={"folders": [{"id": 5}]}),
    ]

    items = freshservice_client.fetch_page("/x", "folders", 1, config=config)

    assert items == [{"id": 5}]
    assert mock_get.call_count == 2
    mock_sleep.assert_called_once_with(7.0)


@patch('api_clients.decorators.time.sleep')
@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_gives_up_after_max_retries(mock_get, mock_sleep, config, caplog):
    mock_get.side_effect = [make_response(status_code=503) for _ in range(config['max_retries'] + 1)]

    assert freshservice_client.fetch_page("/x", "folders", 1, config=config) is None
    assert mock_get.call_count == config['max_retries'] + 1
    assert "after 2 retries" in caplog.text


@patch('api_clients.decorators.time.sleep')
@patch('api_clients.freshservice_client.requests.get')
def test_fetch_page_retries_connection_errors(mock_get, mock_sleep, config):
    mock_get.side_effect = [
        requests.exceptions.ConnectionError("reset"),
        make_response(json_data={"folders": []}),
    ]
    assert freshservice_client.fetch_page("/x", "folders", 1, config=config) == []
    assert mock_get.call_count == 2


# --- Tests for fetch_all ---

@patch('api_clients.freshservice_client.time.sleep')
@patch('api_clients.freshservice_client.fetch_page')
def test_fetch_all_stops_on_short_page(mock_fetch_page, mock_sleep, config):
    mock_fetch_page.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 3}, {"id": 4}], [{"id": 5}]]

    items = freshservice_client.fetch_all("/solutions/categories", "categories", config)

    assert items == [{"id": 1}, {"id": 2}, {"id": 3}, {"id": 4}, {"id": 5}]
    assert mock_fetch_page.call_args_list == [
        call("/solutions/categories", "categories", 1, config=config),
        call("/solutions/categories", "categories", 2, config=config),
        call("/solutions/categories", "categories", 3, config=config),
    ]
    assert mock_sleep.call_count == 2


@patch('api_clients.freshservice_client.time.sleep')
@patch('api_clients.freshservice_client.fetch_page')
def test_fetch_all_stops_on_empty_page(mock_fetch_page, mock_sleep, config):
    mock_fetch_page.side_effect = [[{"id": 1}, {"id": 2}], []]

    items = freshservice_client.fetch_all("/x", "folders", config)

    assert items == [{"id": 1}, {"id": 2}]
    assert mock_fetch_page.call_count == 2


@patch('api_clients.freshservice_client.time.sleep')
@patch('api_clients.freshservice_client.fetch_page')
def test_fetch_all_empty_collection(mock_fetch_page, mock_sleep, config):
    mock_fetch_page.return_value = []
    assert freshservice_client.fetch_all("/x", "folders", config) == []


@patch('api_clients.freshservice_client.time.sleep')
@patch('api_clients.freshservice_client.fetch_page')
def test_fetch_all_failure_is_not_an_empty_collection(mock_fetch_page, mock_sleep, config):
    mock_fetch_page.side_effect = [[{"id": 1}, {"id": 2}], None]

    assert freshservice_client.fetch_all("/x", "folders", config) is None


# --- Tests for fetch_article ---

@patch('api_clients.freshservice_client.requests.get')
def test_fetch_article_unwraps_envelope(mock_get, config):
    mock_get.return_value = make_response(json_data={"article": {"id": 9, "description": "<p>x</p>"}})

    article = freshservice_client.fetch_article(9, config=config)

    assert article == {"id": 9, "description": "<p>x</p>"}
    assert mock_get.call_args[0][0] == "https://acme.freshservice.com/api/v2/solutions/articles/9"


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_article_not_found(mock_get, config):
    mock_get.return_value = make_response(status_code=404)
    assert freshservice_client.fetch_article(9, config=config) is None


# --- Tests for fetch_asset ---

@patch('api_clients.freshservice_client.requests.get')
def test_fetch_asset_sends_credentials_to_helpdesk_host(mock_get, config):
    mock_get.return_value = make_response(content=b"img")

    content = freshservice_client.fetch_asset("https://acme.freshservice.com/helpdesk/attachments/1", config=config)

    assert content == b"img"
    assert mock_get.call_args.kwargs['auth'] == ('secret-key', 'X')
    assert mock_get.call_args.kwargs['allow_redirects'] is True


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_asset_anonymous_for_other_hosts(mock_get, config):
    mock_get.return_value = make_response(content=b"img")

    freshservice_client.fetch_asset("https://cdn.example.com/x.png", config=config)

    assert mock_get.call_args.kwargs['auth'] is None


@patch('api_clients.freshservice_client.requests.get')
def test_fetch_asset_empty_body_fails(mock_get, config):
    mock_get.return_value = make_response(content=b"")
    assert freshservice_client.fetch_asset("https://cdn.example.com/x.png", config=config) is None
