"""HTTP client for the case API.

Every request carries the bearer token of the current session. Failures are
turned into a single user-facing notification plus a typed ``ApiError``;
nothing is retried.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

from logic.config import Settings
from logic.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    PermissionDeniedError,
    RequestError,
    ServerError,
)
from logic.notify import Notifier
from logic.routing import Router
from logic.session import Session

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200

MSG_EXPIRED = "登录已过期，请重新登录"
MSG_FORBIDDEN = "您没有权限执行此操作"
MSG_SERVER = "服务器内部错误，请稍后重试"
MSG_FAILED = "请求处理失败"
MSG_OFFLINE = "无法连接到服务器，请检查网络"
MSG_BAD_REQUEST = "请求配置错误"


class ApiClient:
    def __init__(
        self,
        settings: Settings,
        session: Session,
        notifier: Optional[Notifier] = None,
        router: Optional[Router] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings
        self.session = session
        self.notifier = notifier or Notifier()
        self.router = router
        self._http = httpx.Client(
            base_url=settings.api_url,
            timeout=settings.timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    # -------------------------------------------------------------------------
    # verbs
    # -------------------------------------------------------------------------

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, files: Optional[List[Tuple]] = None) -> Any:
        return self.request("POST", path, json=json, files=files)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        return self.request("DELETE", path, params=params, json=json)

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Issue one request and return the envelope's ``data``."""
        headers = {}
        token = self.session.store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s", method, path)
        try:
            resp = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s: no response (%s)", method, path, e)
            self.notifier.error(MSG_OFFLINE)
            raise NetworkError(MSG_OFFLINE) from e
        except httpx.RequestError as e:
            logger.warning("%s %s: %s", method, path, e)
            self.notifier.error(MSG_BAD_REQUEST)
            raise RequestError(MSG_BAD_REQUEST) from e

        if resp.is_error:
            raise self._status_error(resp)
        return self._unwrap(resp)

    # -------------------------------------------------------------------------
    # raw downloads (attachment URLs may live outside the API host)
    # -------------------------------------------------------------------------

    def fetch_bytes(self, url: str) -> bytes:
        try:
            resp = self._http.get(url)
        except httpx.RequestError as e:
            logger.warning("GET %s: no response (%s)", url, e)
            self.notifier.error(MSG_OFFLINE)
            raise NetworkError(MSG_OFFLINE) from e
        if resp.is_error:
            raise self._status_error(resp)
        return resp.content

    def download(self, url: str, dest: Path) -> Path:
        dest = Path(dest)
        try:
            with self._http.stream("GET", url) as resp:
                if resp.is_error:
                    resp.read()
                    raise self._status_error(resp)
                with dest.open("wb") as fh:
                    for chunk in resp.iter_bytes():
                        fh.write(chunk)
        except httpx.RequestError as e:
            logger.warning("GET %s: no response (%s)", url, e)
            self.notifier.error(MSG_OFFLINE)
            raise NetworkError(MSG_OFFLINE) from e
        logger.info("Downloaded %s to %s", url, dest)
        return dest

    def require(self, data: Any) -> Any:
        """Reject a successful envelope that carries no ``data``."""
        if data is None:
            logger.warning("Envelope without data")
            self.notifier.error(MSG_FAILED)
            raise RequestError(MSG_FAILED, SUCCESS_CODE)
        return data

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _status_error(self, resp: httpx.Response) -> ApiError:
        status = resp.status_code
        logger.warning("%s %s -> HTTP %s", resp.request.method, resp.request.url.path, status)

        if status == 401:
            self.session.expire()
            # only redirect when not already on the login route
            if self.router is None or self.router.redirect_to_login():
                self.notifier.error(MSG_EXPIRED)
            return AuthenticationError(MSG_EXPIRED, status)
        if status == 403:
            self.notifier.error(MSG_FORBIDDEN)
            return PermissionDeniedError(MSG_FORBIDDEN, status)
        if status >= 500:
            self.notifier.error(MSG_SERVER)
            return ServerError(MSG_SERVER, status)

        message = _envelope_message(resp) or MSG_FAILED
        self.notifier.error(message)
        return RequestError(message, status)

    def _unwrap(self, resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError:
            self.notifier.error(MSG_FAILED)
            raise RequestError(MSG_FAILED, resp.status_code)

        code = body.get("code") if isinstance(body, dict) else None
        if code != SUCCESS_CODE:
            message = (body.get("message") if isinstance(body, dict) else None) or MSG_FAILED
            self.notifier.error(message)
            raise RequestError(message, code)
        return body.get("data")


def _envelope_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or None
    return None
