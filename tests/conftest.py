"""Shared fixtures: a scripted recording transport and an in-memory Concerto API."""

from __future__ import annotations

import itertools
import json
from typing import Any

import pytest

from concerto_provider.api import TransportResponse
from concerto_provider.api.client import ConcertoAPIClient
from concerto_provider.exceptions import TransportError


class RecordingTransport:
    """Returns scripted responses per (method, path) and records every call.

    When several responses are queued for the same route they are served in
    order; the last one is then repeated. Unscripted routes fail the test.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.bodies: list[Any] = []
        self._routes: dict[tuple[str, str], list[TransportResponse | Exception]] = {}

    def add(self, method: str, path: str, json_body: Any = None, body: bytes | None = None, status: int = 200):
        if body is None:
            body = b"" if json_body is None else json.dumps(json_body).encode()
        self._routes.setdefault((method, path), []).append(TransportResponse(body=body, status=status))

    def add_error(self, method: str, path: str, message: str = "connection refused"):
        self._routes.setdefault((method, path), []).append(TransportError(message))

    def get(self, path: str) -> TransportResponse:
        return self._dispatch("GET", path, None)

    def post(self, path: str, body: bytes) -> TransportResponse:
        return self._dispatch("POST", path, body)

    def delete(self, path: str) -> TransportResponse:
        return self._dispatch("DELETE", path, None)

    def _dispatch(self, method: str, path: str, body: bytes | None) -> TransportResponse:
        self.calls.append(f"{method} {path}")
        self.bodies.append(json.loads(body) if body else None)
        queue = self._routes.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected call: {method} {path}")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeConcertoAPI:
    """Stateful stand-in for the Concerto ``/kaas`` endpoints."""

    def __init__(self, instances: dict[str, str] | None = None) -> None:
        self.calls: list[str] = []
        self.instances = dict(instances or {})  # fqdn -> public ip
        self.load_balancers: dict[str, dict[str, Any]] = {}
        self.nodes: dict[str, dict[str, str]] = {}  # lb id -> {node id: ip}
        self.faults: dict[tuple[str, str], int] = {}
        self._ids = itertools.count(1)

    # ── Test helpers ────────────────────────────────────────────────

    def add_load_balancer(self, name: str, port: int = 80, node_port: int = 30080, members=()) -> str:
        lb_id = f"lb-{next(self._ids)}"
        self.load_balancers[lb_id] = {
            "id": lb_id, "name": name, "fqdn": f"{name}.lb.example.com",
            "port": port, "nodeport": node_port, "protocol": "tcp",
        }
        self.nodes[lb_id] = {f"node-{next(self._ids)}": ip for ip in members}
        return lb_id

    def members(self, name: str) -> set[str]:
        for lb_id, lb in self.load_balancers.items():
            if lb["name"] == name:
                return set(self.nodes[lb_id].values())
        raise KeyError(name)

    def fail(self, method: str, path: str, status: int = 500) -> None:
        self.faults[(method, path)] = status

    @property
    def mutations(self) -> list[str]:
        return [c for c in self.calls if not c.startswith("GET ")]

    def reset_calls(self) -> None:
        self.calls.clear()

    # ── Transport protocol ──────────────────────────────────────────

    def get(self, path: str) -> TransportResponse:
        return self._handle("GET", path, None)

    def post(self, path: str, body: bytes) -> TransportResponse:
        return self._handle("POST", path, json.loads(body))

    def delete(self, path: str) -> TransportResponse:
        return self._handle("DELETE", path, None)

    def _handle(self, method: str, path: str, payload: Any) -> TransportResponse:
        self.calls.append(f"{method} {path}")
        if (method, path) in self.faults:
            return self._reply(self.faults[(method, path)], {"error": "injected"})

        parts = path.strip("/").split("/")
        if parts == ["kaas", "ships"] and method == "GET":
            if not self.instances:
                return self._reply(404, None)
            ships = [
                {"id": f"ship-{name}", "fqdn": name, "public_ip": ip, "cpus": 2.0, "memory": 4096, "storage": 40}
                for name, ip in self.instances.items()
            ]
            return self._reply(200, ships)

        if parts == ["kaas", "load_balancers"]:
            if method == "GET":
                return self._reply(200, list(self.load_balancers.values()))
            if method == "POST":
                lb_id = f"lb-{next(self._ids)}"
                lb = {**payload, "id": lb_id, "fqdn": f"{payload['name']}.lb.example.com"}
                self.load_balancers[lb_id] = lb
                self.nodes[lb_id] = {}
                return self._reply(201, lb)

        if len(parts) == 3 and parts[:2] == ["kaas", "load_balancers"] and method == "DELETE":
            if self.load_balancers.pop(parts[2], None) is None:
                return self._reply(404, None)
            self.nodes.pop(parts[2], None)
            return self._reply(204, None)

        if len(parts) >= 4 and parts[:2] == ["kaas", "load_balancers"] and parts[3] == "nodes":
            lb_nodes = self.nodes.get(parts[2])
            if lb_nodes is None:
                return self._reply(404, None)
            if len(parts) == 4 and method == "GET":
                return self._reply(200, [{"id": nid, "public_ip": ip} for nid, ip in lb_nodes.items()])
            if len(parts) == 4 and method == "POST":
                node_id = f"node-{next(self._ids)}"
                lb_nodes[node_id] = payload["public_ip"]
                return self._reply(201, {"id": node_id, "public_ip": payload["public_ip"]})
            if len(parts) == 5 and method == "DELETE":
                if lb_nodes.pop(parts[4], None) is None:
                    return self._reply(404, None)
                return self._reply(204, None)

        raise AssertionError(f"Unhandled call: {method} {path}")

    @staticmethod
    def _reply(status: int, data: Any) -> TransportResponse:
        body = b"" if data is None else json.dumps(data).encode()
        return TransportResponse(body=body, status=status)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(transport) -> ConcertoAPIClient:
    return ConcertoAPIClient(transport)


@pytest.fixture
def fake_api() -> FakeConcertoAPI:
    return FakeConcertoAPI(instances={
        "node-a.example.com": "1.2.3.4",
        "node-b.example.com": "5.6.7.8",
        "node-c.example.com": "9.9.9.9",
    })


@pytest.fixture
def fake_client(fake_api) -> ConcertoAPIClient:
    return ConcertoAPIClient(fake_api)
