"""Concerto API package: transport Protocol and its response type."""

from __future__ import annotations

from typing import NamedTuple, Protocol, runtime_checkable


class TransportResponse(NamedTuple):
    """Raw result of one HTTP exchange: payload bytes and status code."""

    body: bytes
    status: int

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@runtime_checkable
class Transport(Protocol):
    """Protocol that every transport must satisfy.

    Paths are relative to the configured API endpoint. Implementations raise
    TransportError when no HTTP response is obtained and never interpret the
    status code.
    """

    def get(self, path: str) -> TransportResponse:
        ...

    def post(self, path: str, body: bytes) -> TransportResponse:
        ...

    def delete(self, path: str) -> TransportResponse:
        ...
