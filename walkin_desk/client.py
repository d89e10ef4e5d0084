"""
HTTP client for the workshop backend.
"""
from typing import Any, Optional

import requests
import structlog

from walkin_desk.auth import AuthContext
from walkin_desk.config import Settings, get_settings
from walkin_desk.errors import ApiError, AuthenticationRequired, MalformedResponse, TransportError
from walkin_desk.payloads import unwrap_references

logger = structlog.get_logger(__name__)


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = unwrap_references(response.json())
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "title", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return None


class ApiClient:
    """
    Thin wrapper over a requests.Session bound to one backend and one AuthContext.

    Returns decoded JSON with reference metadata already unwrapped. Network
    failures and timeouts raise TransportError, a 401 raises
    AuthenticationRequired and any other non-2xx status raises ApiError.
    """

    def __init__(
        self,
        auth: AuthContext,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.auth = auth
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.base_url = self.settings.backend_url.rstrip("/")

    def close(self) -> None:
        self.session.close()

    def get(self, path: str, params: Optional[dict] = None, authenticated: bool = True) -> Any:
        return self._request("GET", path, params=params, authenticated=authenticated)

    def post(self, path: str, payload: Any, authenticated: bool = True) -> Any:
        return self._request("POST", path, json=payload, authenticated=authenticated)

    def _request(self, method: str, path: str, authenticated: bool = True, **kwargs) -> Any:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authenticated:
            headers.update(self.auth.authorization_header())

        url = f"{self.base_url}{path}"
        logger.debug("backend_request", method=method, path=path)
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                timeout=self.settings.request_timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            logger.warning("backend_timeout", method=method, path=path)
            raise TransportError("The workshop backend did not respond in time") from exc
        except requests.RequestException as exc:
            logger.warning("backend_unreachable", method=method, path=path, error=str(exc))
            raise TransportError() from exc

        if response.status_code == 401:
            logger.warning("backend_unauthorized", method=method, path=path)
            raise AuthenticationRequired()

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "backend_error",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise ApiError(response.status_code, message)

        if not response.content:
            return None

        try:
            return unwrap_references(response.json())
        except ValueError as exc:
            raise MalformedResponse() from exc
