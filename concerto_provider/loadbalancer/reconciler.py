"""Load-balancer membership reconciliation against the Concerto API."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..api.client import ConcertoAPIClient
from ..api.models import LoadBalancer, LoadBalancerStatus
from ..exceptions import (
    LoadBalancerNotFound,
    UnsupportedAffinityError,
    UnsupportedExternalIPError,
)
from .resolver import AddressResolver

logger = logging.getLogger(__name__)

SESSION_AFFINITY_NONE = "None"


@dataclass(frozen=True)
class MembershipPlan:
    """Addresses to deregister and register to converge one load balancer."""

    to_remove: frozenset[str] = field(default_factory=frozenset)
    to_add: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.to_remove and not self.to_add


class LoadBalancerReconciler:
    """Converges a named load balancer to a desired set of backend hosts.

    Holds no state between calls; each operation re-reads the load balancer
    and its members from the API. Calls for the same name must be serialized
    by the caller.
    """

    def __init__(self, client: ConcertoAPIClient, resolver: AddressResolver | None = None):
        self._client = client
        self._resolver = resolver or AddressResolver(client)

    def get(self, name: str) -> LoadBalancerStatus | None:
        lb = self._client.find_load_balancer_by_name(name)
        if lb is None:
            return None
        return LoadBalancerStatus.for_load_balancer(lb)

    def ensure(
        self,
        name: str,
        port: int,
        node_port: int,
        hosts: Iterable[str],
        affinity: str | None = SESSION_AFFINITY_NONE,
        external_ip: str | None = None,
    ) -> LoadBalancerStatus:
        """Create the load balancer if missing, otherwise converge its members."""
        if affinity not in (None, SESSION_AFFINITY_NONE):
            raise UnsupportedAffinityError(affinity)
        if external_ip:
            raise UnsupportedExternalIPError()

        hosts = set(hosts)
        logger.info(
            "Ensuring load balancer %s with %d hosts", name, len(hosts),
            extra={"load_balancer": name},
        )

        lb = self._client.find_load_balancer_by_name(name)
        if lb is None:
            lb = self._create(name, port, node_port, hosts)
        else:
            self._converge(lb, hosts)

        return LoadBalancerStatus.for_load_balancer(lb)

    def update(self, name: str, hosts: Iterable[str]) -> MembershipPlan:
        """Bring the members of an existing load balancer in line with ``hosts``.

        Not transactional: removals that succeeded before a failing call stay
        applied. Calling again with the same hosts repairs partial state.
        """
        lb = self._client.find_load_balancer_by_name(name)
        if lb is None:
            raise LoadBalancerNotFound(f"Load balancer {name} not found")
        return self._converge(lb, set(hosts))

    def ensure_deleted(self, name: str) -> None:
        """Delete the load balancer if it exists; absence is success."""
        lb = self._client.find_load_balancer_by_name(name)
        if lb is None:
            logger.debug("Load balancer %s already absent", name, extra={"load_balancer": name})
            return
        self._client.delete_load_balancer_by_id(lb.id)

    @staticmethod
    def plan(actual: Iterable[str], desired: Iterable[str]) -> MembershipPlan:
        actual, desired = frozenset(actual), frozenset(desired)
        return MembershipPlan(to_remove=actual - desired, to_add=desired - actual)

    # ── Internal steps ──────────────────────────────────────────────

    def _create(self, name: str, port: int, node_port: int, hosts: set[str]) -> LoadBalancer:
        lb = self._client.create_load_balancer(name, port, node_port)
        if hosts:
            # A failure here leaves the load balancer partially populated;
            # the next ensure/update converges it.
            addresses = self._resolver.resolve_names(hosts)
            self._client.add_members(lb.id, sorted(addresses))
        return lb

    def _converge(self, lb: LoadBalancer, hosts: set[str]) -> MembershipPlan:
        start = time.monotonic()
        actual = self._client.list_member_addresses(lb.id)
        desired = self._resolver.resolve_names(hosts)
        plan = self.plan(actual, desired)

        logger.info(
            "Load balancer %s: removing %d, adding %d, keeping %d",
            lb.name, len(plan.to_remove), len(plan.to_add), len(actual & desired),
            extra={
                "load_balancer": lb.name,
                "load_balancer_id": lb.id,
                "to_remove": plan.to_remove,
                "to_add": plan.to_add,
            },
        )

        # Removals go first so membership never exceeds the larger of the two sets.
        self._client.remove_members(lb.id, sorted(plan.to_remove))
        self._client.add_members(lb.id, sorted(plan.to_add))

        logger.info(
            "Load balancer %s converged", lb.name,
            extra={"load_balancer": lb.name, "elapsed_seconds": round(time.monotonic() - start, 2)},
        )
        return plan
