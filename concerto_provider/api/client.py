"""Typed resource client for the Concerto ``/kaas`` REST API."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..exceptions import (
    APIError,
    DecodeError,
    InstanceNotFound,
    LoadBalancerCreateError,
    LoadBalancerDeleteError,
    LoadBalancerDeregisterInstanceError,
    LoadBalancerNotFound,
    LoadBalancerRegisterInstanceError,
    MemberNotFound,
)
from . import Transport, TransportResponse
from .models import Instance, LoadBalancer, Member, decode_list, decode_json, encode_json

logger = logging.getLogger(__name__)

SHIPS_PATH = "/kaas/ships"
LOAD_BALANCERS_PATH = "/kaas/load_balancers"


class ConcertoAPIClient:
    """Instance and load-balancer operations over a Transport.

    Nothing is cached: every lookup re-lists from the remote API.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    # ── Instances ───────────────────────────────────────────────────

    def list_instances(self) -> list[Instance]:
        """Return all instances. The API answers 404 when there are none."""
        resp = self._transport.get(SHIPS_PATH)
        if resp.status == 404:
            logger.debug("No instances (HTTP 404 on %s)", SHIPS_PATH)
            return []
        self._check_status(resp, "GET", SHIPS_PATH)
        instances = [Instance.from_api(s) for s in decode_list(resp.body, "instance list")]
        logger.debug("Listed %d instances", len(instances))
        return instances

    def find_instance_by_name(self, name: str) -> Instance:
        for instance in self.list_instances():
            if instance.name == name:
                return instance
        raise InstanceNotFound(f"instance {name}")

    def find_instance_by_address(self, address: str) -> Instance:
        for instance in self.list_instances():
            if instance.public_ip == address:
                return instance
        raise InstanceNotFound(f"instance with address {address}")

    # ── Load balancers ──────────────────────────────────────────────

    def list_load_balancers(self) -> list[LoadBalancer]:
        resp = self._transport.get(LOAD_BALANCERS_PATH)
        self._check_status(resp, "GET", LOAD_BALANCERS_PATH)
        return [LoadBalancer.from_api(lb) for lb in decode_list(resp.body, "load balancer list")]

    def find_load_balancer_by_name(self, name: str) -> LoadBalancer | None:
        """Return the load balancer called ``name``, or None if there is none."""
        for lb in self.list_load_balancers():
            if lb.name == name:
                return lb
        logger.debug("Load balancer %s not found", name, extra={"load_balancer": name})
        return None

    def create_load_balancer(self, name: str, port: int, node_port: int) -> LoadBalancer:
        """Create a TCP load balancer; the returned value carries the assigned id."""
        lb = LoadBalancer(name=name, fqdn=name, port=port, node_port=node_port)
        resp = self._transport.post(LOAD_BALANCERS_PATH, encode_json(lb.to_api()))
        if resp.status != 201:
            raise LoadBalancerCreateError(
                f"HTTP {resp.status} when creating load balancer {name}",
                status_code=resp.status,
                path=f"POST {LOAD_BALANCERS_PATH}",
                response_body=resp.text,
            )

        created = decode_json(resp.body, "load balancer")
        if not isinstance(created, dict):
            raise DecodeError("Expected a JSON object for the created load balancer")
        lb = LoadBalancer.from_api({**lb.to_api(), **created})
        logger.info(
            "Created load balancer %s (id %s)", lb.name, lb.id,
            extra={"load_balancer": lb.name, "load_balancer_id": lb.id},
        )
        return lb

    def delete_load_balancer_by_id(self, lb_id: str) -> None:
        path = f"{LOAD_BALANCERS_PATH}/{lb_id}"
        resp = self._transport.delete(path)
        if resp.status not in (200, 204):
            raise LoadBalancerDeleteError(
                f"HTTP {resp.status} when deleting load balancer {lb_id}",
                status_code=resp.status,
                path=f"DELETE {path}",
                response_body=resp.text,
            )
        logger.info("Deleted load balancer %s", lb_id, extra={"load_balancer_id": lb_id})

    # ── Members ─────────────────────────────────────────────────────

    def list_members(self, lb_id: str) -> list[Member]:
        """Return the nodes registered with a load balancer.

        Unlike the instance listing, a 404 here means the load balancer is gone.
        """
        path = self._nodes_path(lb_id)
        resp = self._transport.get(path)
        if resp.status == 404:
            raise LoadBalancerNotFound(f"Load balancer not found {lb_id}")
        self._check_status(resp, "GET", path)
        return [Member.from_api(n) for n in decode_list(resp.body, "load balancer node list")]

    def list_member_addresses(self, lb_id: str) -> set[str]:
        return {member.public_ip for member in self.list_members(lb_id)}

    def find_member_by_address(self, lb_id: str, address: str) -> Member:
        for member in self.list_members(lb_id):
            if member.public_ip == address:
                return member
        raise MemberNotFound(f"Node {address} not found in load balancer {lb_id}")

    def add_member(self, lb_id: str, address: str) -> None:
        """Register the instance owning ``address`` with the load balancer."""
        instance = self.find_instance_by_address(address)
        path = self._nodes_path(lb_id)
        resp = self._transport.post(path, encode_json(Member.for_instance(instance).to_api()))
        if resp.status != 201:
            raise LoadBalancerRegisterInstanceError(
                f"HTTP {resp.status} when registering {address} with load balancer {lb_id}",
                status_code=resp.status,
                path=f"POST {path}",
                response_body=resp.text,
            )
        logger.info(
            "Added %s to load balancer %s", address, lb_id,
            extra={"load_balancer_id": lb_id, "address": address},
        )

    def remove_member(self, lb_id: str, address: str) -> None:
        """Deregister the node with ``address`` from the load balancer."""
        member = self.find_member_by_address(lb_id, address)
        path = f"{self._nodes_path(lb_id)}/{member.id}"
        resp = self._transport.delete(path)
        if resp.status not in (200, 204):
            raise LoadBalancerDeregisterInstanceError(
                f"HTTP {resp.status} when deregistering {address} from load balancer {lb_id}",
                status_code=resp.status,
                path=f"DELETE {path}",
                response_body=resp.text,
            )
        logger.info(
            "Removed %s from load balancer %s", address, lb_id,
            extra={"load_balancer_id": lb_id, "address": address},
        )

    def add_members(self, lb_id: str, addresses: Iterable[str]) -> None:
        """Register each address in turn; the first failure aborts."""
        for address in addresses:
            self.add_member(lb_id, address)

    def remove_members(self, lb_id: str, addresses: Iterable[str]) -> None:
        """Deregister each address in turn; the first failure aborts."""
        for address in addresses:
            self.remove_member(lb_id, address)

    # ── Internal helpers ────────────────────────────────────────────

    @staticmethod
    def _nodes_path(lb_id: str) -> str:
        return f"{LOAD_BALANCERS_PATH}/{lb_id}/nodes"

    @staticmethod
    def _check_status(resp: TransportResponse, method: str, path: str) -> None:
        if resp.status >= 400:
            raise APIError(
                f"HTTP {resp.status} on {method} {path}: {resp.text}",
                status_code=resp.status,
                path=f"{method} {path}",
                response_body=resp.text,
            )
