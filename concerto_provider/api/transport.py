"""requests-based transport for the Concerto API (TLS client-certificate auth)."""

from __future__ import annotations

import logging
import time

import requests

from ..config import ConnectionConfig
from ..exceptions import TransportError
from . import TransportResponse

logger = logging.getLogger(__name__)


class RestTransport:
    """Executes GET/POST/DELETE against the configured API endpoint.

    One ``requests.Session`` is kept per transport so connections are reused.
    Status codes are returned as-is; only network failures raise.
    """

    def __init__(self, config: ConnectionConfig):
        self._base = config.api_endpoint.rstrip("/")
        self._session = requests.Session()
        self._session.cert = (config.cert, config.key)
        self._session.headers["Content-Type"] = "application/json"
        self._session.headers["Accept"] = "application/json"
        if config.ca_cert:
            self._session.verify = config.ca_cert
        else:
            self._session.verify = config.verify_ssl
        self._timeout = config.timeout

    def get(self, path: str) -> TransportResponse:
        return self._request("GET", path)

    def post(self, path: str, body: bytes) -> TransportResponse:
        return self._request("POST", path, data=body)

    def delete(self, path: str) -> TransportResponse:
        return self._request("DELETE", path)

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, **kwargs) -> TransportResponse:
        url = f"{self._base}/{path.lstrip('/')}"
        kwargs.setdefault("timeout", self._timeout)
        logger.debug("%s %s", method, path, extra={"path": path})

        start = time.monotonic()
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        logger.debug(
            "%s %s -> HTTP %d",
            method, path, resp.status_code,
            extra={
                "path": path,
                "status_code": resp.status_code,
                "elapsed_seconds": round(time.monotonic() - start, 3),
            },
        )
        return TransportResponse(body=resp.content, status=resp.status_code)
