from leadcrawl.services.http_service import HttpService
from leadcrawl.exceptions import NavigationError
from unittest.mock import Mock
import pytest
import requests


def test_fetch_success_sends_user_agent_and_timeout():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = 'hello world'
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=10)
    response = http.fetch('http://example.com', timeout=2.5)
    assert response.status_code == 200
    assert response.text == 'hello world'
    mock_http_client.assert_called_once_with(
        'http://example.com', headers={'User-Agent': 'TestAgent'}, timeout=2.5,
    )


def test_fetch_uses_default_timeout():
    mock_http_client = Mock()
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=7)
    http.fetch('http://example.com')
    assert mock_http_client.call_args.kwargs['timeout'] == 7


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("timed out"),
    requests.exceptions.ConnectionError("refused"),
])
def test_fetch_wraps_transient_errors(error):
    mock_http_client = Mock(side_effect=error)
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)

    with pytest.raises(NavigationError) as exc:
        http.fetch('http://example.com')
    assert exc.value.transient is True
    assert "http://example.com" in str(exc.value)
    assert exc.value.original is error


def test_fetch_wraps_other_request_errors_as_permanent():
    mock_http_client = Mock(side_effect=requests.exceptions.InvalidURL("bad"))
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)

    with pytest.raises(NavigationError) as exc:
        http.fetch('http://exa mple.com')
    assert exc.value.transient is False


def test_fetch_content_type_from_headers():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = '<html>test</html>'
    mock_http_client.return_value.headers = {'Content-Type': 'text/html; charset=utf-8'}
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.content_type == 'text/html; charset=utf-8'


def test_fetch_missing_content_type():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = 'data'
    mock_http_client.return_value.headers = {}
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.content_type is None


def test_fetch_bubbles_unexpected_exceptions():
    """Non-requests exceptions from headers.get() are NOT swallowed."""
    mock_response = Mock()
    mock_response.status_code = 200
    mock_response.text = 'test'
    mock_response.headers.get.side_effect = RuntimeError("Real bug in headers.get()")
    http = HttpService(user_agent='TestAgent', http_client=Mock(return_value=mock_response))

    with pytest.raises(RuntimeError, match="Real bug"):
        http.fetch('http://example.com')
