# clients/retraction_api_client.py
import logging
import os
import threading
import requests
from typing import Any, Dict, Mapping, Optional

from utils.cancellation import CancellationToken, RequestCancelled

logger = logging.getLogger(__name__)

API_URL = os.getenv("RETRACTION_API_URL", "http://localhost:5001")
PROBE_TIMEOUT_SECONDS = 3
REQUEST_TIMEOUT_SECONDS = float(os.getenv("RETRACTION_API_TIMEOUT_SECONDS", "30"))


class ApiError(Exception):
    """Network, HTTP or payload failure talking to the backend."""


class RetractionApiClient:
    """
    Thin client for the retraction browser API.

    Page requests take an optional CancellationToken. A tokened request is
    sent from its own daemon thread and the caller waits on either the
    response or the cancel, so cancelling returns RequestCancelled right away
    even when the backend never answers. The abandoned transport is closed
    and left to run into its read timeout.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        session_factory=requests.Session,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session_factory = session_factory

    def _send(self, session, method: str, url: str, token: Optional[CancellationToken], **kwargs):
        if token is None:
            return session.request(method, url, **kwargs)

        outcome: Dict[str, Any] = {}
        done = threading.Event()

        def worker():
            try:
                outcome["response"] = session.request(method, url, **kwargs)
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        threading.Thread(target=worker, name="retraction-api-request", daemon=True).start()
        token.add_callback(done.set)
        done.wait()

        token.raise_if_cancelled()
        if "error" in outcome:
            raise outcome["error"]
        return outcome["response"]

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        if token is not None:
            token.raise_if_cancelled()

        session = self._session_factory()
        if token is not None:
            token.add_callback(session.close)

        try:
            resp = self._send(
                session,
                method,
                f"{self.base_url}{path}",
                token,
                timeout=timeout or self.timeout,
                **kwargs,
            )
            resp.raise_for_status()
            return resp.json()
        except RequestCancelled:
            raise
        except (requests.exceptions.RequestException, ValueError) as e:
            if token is not None and token.cancelled:
                raise RequestCancelled() from e
            logger.error(f"API request {method} {path} failed: {e}")
            raise ApiError(str(e)) from e
        finally:
            session.close()

    def list_papers(self, page: int = 1, limit: int = 100, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        return self._request("GET", "/api/papers", token=token, params={"page": page, "limit": limit})

    def search_papers(
        self,
        filters: Mapping[str, str],
        page: int = 1,
        limit: int = 100,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        payload = dict(filters)
        payload.update({"page": page, "limit": limit})
        return self._request("POST", "/api/search", token=token, json=payload)

    def fetch_page(
        self,
        filters: Optional[Mapping[str, str]],
        page: int,
        limit: int,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """List when no filter is set, search otherwise."""
        if filters:
            return self.search_papers(filters, page, limit, token=token)
        return self.list_papers(page, limit, token=token)

    def get_options(self) -> Dict[str, Any]:
        return self._request("GET", "/api/options")

    def health(self, timeout: float = PROBE_TIMEOUT_SECONDS) -> Dict[str, Any]:
        return self._request("GET", "/api/health", timeout=timeout)


class BackendStatus:
    """
    Backend availability indicator.

    Flips to unavailable on a failed probe or a reported failure and stays
    there until the next successful probe.
    """

    def __init__(self, client: RetractionApiClient, timeout: float = PROBE_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout
        self.available: Optional[bool] = None
        self.papers_loaded: Optional[int] = None
        self._lock = threading.Lock()

    def probe(self) -> bool:
        try:
            body = self.client.health(timeout=self.timeout)
            ok = body.get("status") == "ok"
        except ApiError:
            body, ok = {}, False

        with self._lock:
            self.available = ok
            if ok:
                self.papers_loaded = body.get("papersLoaded")
        if not ok:
            logger.warning("⚠️ Backend unavailable")
        return ok

    def report_failure(self, error: Optional[Exception] = None):
        """Mark the backend unavailable; usable directly as a table `on_failure`."""
        with self._lock:
            self.available = False
        logger.warning(f"⚠️ Backend unavailable: {error}" if error else "⚠️ Backend unavailable")

    @property
    def unavailable(self) -> bool:
        with self._lock:
            return self.available is False
