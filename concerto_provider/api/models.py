"""Data models for Concerto instances, load balancers and their members."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import DecodeError

MIB = 1024 * 1024
GIB = 1024 * MIB


def decode_json(body: bytes, what: str) -> Any:
    """Parse a JSON payload, raising DecodeError on malformed input."""
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Malformed {what} payload: {exc}") from exc


def decode_list(body: bytes, what: str) -> list[dict[str, Any]]:
    """Parse a JSON array of objects. ``null`` is treated as an empty array."""
    data = decode_json(body, what)
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise DecodeError(f"Expected a JSON array of objects for {what}")
    return data


def encode_json(data: dict[str, Any]) -> bytes:
    return json.dumps(data).encode("utf-8")


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def _id(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _str(data, key)


def _number(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind(0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Field '{key}' must be a number, got {type(value).__name__}")
    return kind(value)


@dataclass(frozen=True)
class Instance:
    """A compute instance ("ship") as listed by the Concerto API."""

    id: str
    name: str  # the instance fqdn, used as the host identifier
    public_ip: str
    cpus: float = 0.0
    memory_mib: int = 0
    storage_gib: int = 0
    server_plan_id: str = ""

    @property
    def memory_bytes(self) -> int:
        return self.memory_mib * MIB

    @property
    def storage_bytes(self) -> int:
        return self.storage_gib * GIB

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Instance:
        return cls(
            id=_id(data, "id"),
            name=_str(data, "fqdn"),
            public_ip=_str(data, "public_ip"),
            cpus=_number(data, "cpus", float),
            memory_mib=_number(data, "memory", int),
            storage_gib=_number(data, "storage", int),
            server_plan_id=_str(data, "server_plan_id"),
        )


@dataclass(frozen=True)
class LoadBalancer:
    """A single-port TCP load balancer. ``id`` is None until created remotely."""

    name: str
    port: int
    node_port: int
    fqdn: str = ""
    protocol: str = "tcp"
    id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LoadBalancer:
        lb_id = _id(data, "id")
        if not lb_id:
            raise DecodeError(f"Load balancer {_str(data, 'name')!r} has no id")
        return cls(
            id=lb_id,
            name=_str(data, "name"),
            fqdn=_str(data, "fqdn"),
            port=_number(data, "port", int),
            node_port=_number(data, "nodeport", int),
            protocol=_str(data, "protocol") or "tcp",
        )

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "fqdn": self.fqdn,
            "port": self.port,
            "nodeport": self.node_port,
            "protocol": self.protocol,
        }
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass(frozen=True)
class Member:
    """One instance's attachment to a load balancer, keyed by address."""

    id: str
    public_ip: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Member:
        return cls(id=_id(data, "id"), public_ip=_str(data, "public_ip"))

    @classmethod
    def for_instance(cls, instance: Instance) -> Member:
        return cls(id="", public_ip=instance.public_ip)

    def to_api(self) -> dict[str, Any]:
        # The node id is assigned remotely; only the address is sent.
        return {"public_ip": self.public_ip}


@dataclass(frozen=True)
class LoadBalancerIngress:
    hostname: str = ""
    ip: str = ""


@dataclass(frozen=True)
class LoadBalancerStatus:
    """What the orchestrator publishes as the service's external endpoint."""

    ingress: list[LoadBalancerIngress] = field(default_factory=list)

    @classmethod
    def for_load_balancer(cls, lb: LoadBalancer) -> LoadBalancerStatus:
        return cls(ingress=[LoadBalancerIngress(hostname=lb.fqdn)])

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingress": [
                {k: v for k, v in (("hostname", i.hostname), ("ip", i.ip)) if v}
                for i in self.ingress
            ],
        }
