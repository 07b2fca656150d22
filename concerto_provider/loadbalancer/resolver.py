"""Host-name to address resolution for load-balancer membership."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..api.client import ConcertoAPIClient
from ..exceptions import InstanceNotFound

logger = logging.getLogger(__name__)


class AddressResolver:
    """Maps host identifiers (instance names) to their public addresses."""

    def __init__(self, client: ConcertoAPIClient):
        self._client = client

    def resolve_names(self, names: Iterable[str]) -> set[str]:
        """Resolve every name or fail on the first one that has no instance.

        A single instance listing is used per call. Names are visited in
        sorted order so the reported miss is deterministic.
        """
        wanted = sorted(set(names))
        if not wanted:
            return set()

        # Duplicate names resolve to the first listed instance.
        addresses_by_name: dict[str, str] = {}
        for instance in self._client.list_instances():
            addresses_by_name.setdefault(instance.name, instance.public_ip)
        addresses: set[str] = set()
        for name in wanted:
            address = addresses_by_name.get(name)
            if address is None:
                raise InstanceNotFound(f"instance {name}")
            addresses.add(address)

        logger.debug("Resolved %d hosts to %d addresses", len(wanted), len(addresses))
        return addresses
