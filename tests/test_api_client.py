import socket
import threading
from unittest.mock import MagicMock

import pytest
import requests

from clients.retraction_api_client import ApiError, BackendStatus, RetractionApiClient
from utils.cancellation import CancellationToken, RequestCancelled


def make_session(json_body=None, status=200, error=None):
    session = MagicMock()
    if error is not None:
        session.request.side_effect = error
        return session

    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = json_body
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} error")
    session.request.return_value = resp
    return session


def test_list_papers_sends_pagination():
    session = make_session({"count": 0, "results": []})
    client = RetractionApiClient("http://backend/", session_factory=lambda: session, timeout=7)

    assert client.list_papers(page=2, limit=50) == {"count": 0, "results": []}
    session.request.assert_called_once_with(
        "GET", "http://backend/api/papers", timeout=7, params={"page": 2, "limit": 50}
    )
    session.close.assert_called()


def test_search_posts_filters_with_page():
    session = make_session({"count": 1})
    client = RetractionApiClient("http://backend", session_factory=lambda: session)

    client.search_papers({"country": "India"}, page=3, limit=25)
    _, kwargs = session.request.call_args
    assert kwargs["json"] == {"country": "India", "page": 3, "limit": 25}


def test_fetch_page_lists_without_filters():
    session = make_session({"count": 0})
    client = RetractionApiClient("http://backend", session_factory=lambda: session)

    client.fetch_page(None, 1, 100)
    assert session.request.call_args[0][:2] == ("GET", "http://backend/api/papers")

    client.fetch_page({"title": "AI"}, 1, 100)
    assert session.request.call_args[0][:2] == ("POST", "http://backend/api/search")


def test_cancelled_token_never_sends():
    session = make_session({})
    client = RetractionApiClient("http://backend", session_factory=lambda: session)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(RequestCancelled):
        client.list_papers(token=token)
    session.request.assert_not_called()


def test_cancel_during_request_discards_response():
    token = CancellationToken()
    session = make_session({"count": 10})

    def cancel_mid_flight(*args, **kwargs):
        token.cancel()
        return MagicMock(json=MagicMock(return_value={"count": 10}))

    session.request.side_effect = cancel_mid_flight
    client = RetractionApiClient("http://backend", session_factory=lambda: session)

    with pytest.raises(RequestCancelled):
        client.list_papers(token=token)
    session.close.assert_called()


def test_transport_error_raised_as_api_error():
    session = make_session(error=requests.exceptions.ConnectionError("refused"))
    client = RetractionApiClient("http://backend", session_factory=lambda: session)
    with pytest.raises(ApiError):
        client.list_papers()


def test_http_error_raised_as_api_error():
    session = make_session({"detail": "Failed to search papers"}, status=500)
    client = RetractionApiClient("http://backend", session_factory=lambda: session)
    with pytest.raises(ApiError):
        client.search_papers({"title": "x"})


def test_backend_status_persists_until_next_successful_probe():
    client = MagicMock()
    client.health.side_effect = ApiError("timeout")
    status = BackendStatus(client, timeout=3)

    assert status.available is None
    assert status.probe() is False
    assert status.unavailable

    client.health.side_effect = None
    client.health.return_value = {"status": "ok", "papersLoaded": 42}
    assert status.probe() is True
    assert not status.unavailable
    assert status.papers_loaded == 42
    client.health.assert_called_with(timeout=3)


def test_reported_failure_marks_backend_unavailable():
    status = BackendStatus(MagicMock())
    status.report_failure()
    assert status.unavailable


def test_health_probe_is_bounded_to_three_seconds():
    session = make_session({"status": "ok", "papersLoaded": 1})
    client = RetractionApiClient("http://backend", session_factory=lambda: session, timeout=30)
    client.health()
    assert session.request.call_args[1]["timeout"] == 3


def test_report_failure_accepts_the_table_error():
    status = BackendStatus(MagicMock())
    status.report_failure(ApiError("503 error"))
    assert status.unavailable


@pytest.fixture
def silent_backend():
    """A listening socket that accepts connections and never answers."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(5)
    try:
        yield f"http://127.0.0.1:{server.getsockname()[1]}"
    finally:
        server.close()


def test_cancel_releases_caller_while_backend_hangs(silent_backend):
    client = RetractionApiClient(silent_backend, timeout=10)
    token = CancellationToken()
    outcome = {}

    def call():
        try:
            outcome["result"] = client.list_papers(token=token)
        except Exception as e:
            outcome["error"] = e

    caller = threading.Thread(target=call, daemon=True)
    caller.start()
    caller.join(0.3)
    assert caller.is_alive()

    token.cancel()
    caller.join(2)

    assert not caller.is_alive()
    assert isinstance(outcome.get("error"), RequestCancelled)
