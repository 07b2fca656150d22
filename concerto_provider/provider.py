"""Orchestrator-facing provider: instance queries and TCP load balancers."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .api.client import ConcertoAPIClient
from .api.models import LoadBalancerStatus
from .api.transport import RestTransport
from .config import AppConfig, load_config
from .exceptions import DecodeError, UnsupportedNumberOfPortsError, UnsupportedOperationError
from .loadbalancer import SESSION_AFFINITY_NONE, LoadBalancerReconciler, MembershipPlan

logger = logging.getLogger(__name__)

PROVIDER_NAME = "concerto"

NODE_EXTERNAL_IP = "ExternalIP"


@dataclass(frozen=True)
class NodeAddress:
    type: str
    address: str


@dataclass(frozen=True)
class NodeResources:
    cpu_millicores: int
    memory_bytes: int


@dataclass(frozen=True)
class ServicePort:
    """One exposed port of a service, as handed over by the orchestrator."""

    port: int
    node_port: int
    protocol: str = "TCP"
    name: str = ""


class ConcertoCloud:
    """Provider implementation backed by the Concerto API."""

    def __init__(self, client: ConcertoAPIClient, reconciler: LoadBalancerReconciler | None = None):
        self._client = client
        self._reconciler = reconciler or LoadBalancerReconciler(client)

    @property
    def provider_name(self) -> str:
        return PROVIDER_NAME

    # ── Instances ───────────────────────────────────────────────────

    def node_addresses(self, name: str) -> list[NodeAddress]:
        instance = self._client.find_instance_by_name(name)
        try:
            address = str(ipaddress.ip_address(instance.public_ip))
        except ValueError as exc:
            raise DecodeError(f"Instance {name} has an invalid address: {instance.public_ip!r}") from exc
        return [NodeAddress(type=NODE_EXTERNAL_IP, address=address)]

    def instance_id(self, name: str) -> str:
        return self._client.find_instance_by_name(name).id

    def external_id(self, name: str) -> str:
        return self.instance_id(name)

    def list_instances(self, filter: str) -> list[str]:
        """Names of the instances whose name matches the regular expression ``filter``."""
        pattern = re.compile(filter)
        return [i.name for i in self._client.list_instances() if pattern.search(i.name)]

    def node_resources(self, name: str) -> NodeResources:
        instance = self._client.find_instance_by_name(name)
        return NodeResources(
            cpu_millicores=int(instance.cpus * 1000),
            memory_bytes=instance.memory_bytes,
        )

    def current_node_name(self, hostname: str) -> str:
        return hostname

    def add_ssh_key_to_all_instances(self, user: str, key_data: bytes) -> None:
        raise UnsupportedOperationError("Adding SSH keys is not supported by Concerto")

    # ── TCP load balancers ──────────────────────────────────────────

    def get_tcp_load_balancer(self, name: str) -> tuple[LoadBalancerStatus | None, bool]:
        status = self._reconciler.get(name)
        return status, status is not None

    def ensure_tcp_load_balancer(
        self,
        name: str,
        ports: list[ServicePort],
        hosts: list[str],
        affinity: str | None = SESSION_AFFINITY_NONE,
        load_balancer_ip: str | None = None,
    ) -> LoadBalancerStatus:
        if len(ports) != 1:
            raise UnsupportedNumberOfPortsError(len(ports))
        port = ports[0]
        return self._reconciler.ensure(
            name,
            port.port,
            port.node_port,
            hosts,
            affinity=affinity,
            external_ip=load_balancer_ip,
        )

    def update_tcp_load_balancer(self, name: str, hosts: list[str]) -> MembershipPlan:
        return self._reconciler.update(name, hosts)

    def ensure_tcp_load_balancer_deleted(self, name: str) -> None:
        self._reconciler.ensure_deleted(name)


def build_provider(config: AppConfig) -> ConcertoCloud:
    """Wire transport, client and reconciler for the given configuration."""
    transport = RestTransport(config.connection)
    logger.info("%s provider configured for %s", PROVIDER_NAME, config.connection.api_endpoint)
    return ConcertoCloud(ConcertoAPIClient(transport))


def provider_from_file(path: str | Path) -> ConcertoCloud:
    return build_provider(load_config(path))
