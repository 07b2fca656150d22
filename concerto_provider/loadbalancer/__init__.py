"""Load-balancer reconciliation: address resolution and membership convergence."""

from .reconciler import SESSION_AFFINITY_NONE, LoadBalancerReconciler, MembershipPlan
from .resolver import AddressResolver

__all__ = ["SESSION_AFFINITY_NONE", "AddressResolver", "LoadBalancerReconciler", "MembershipPlan"]
