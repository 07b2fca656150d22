"""Custom exception hierarchy for the Concerto cloud provider."""


class ConcertoError(Exception):
    """Base exception for all provider errors."""


class ConfigError(ConcertoError):
    """Invalid or missing configuration."""


class TransportError(ConcertoError):
    """The request never produced an HTTP response (connection, TLS, timeout)."""


class DecodeError(ConcertoError):
    """A response payload could not be parsed into the expected shape."""


# ── Lookup misses ──────────────────────────────────────────────────


class NotFoundError(ConcertoError):
    """A named resource does not exist on the remote system."""


class InstanceNotFound(NotFoundError):
    """No instance matches the requested name or address."""


class LoadBalancerNotFound(NotFoundError):
    """The load balancer does not exist."""


class MemberNotFound(NotFoundError):
    """The address is not registered with the load balancer."""


# ── Rejected inputs ────────────────────────────────────────────────


class UnsupportedCapabilityError(ConcertoError):
    """The request asks for something Concerto load balancers cannot do."""


class UnsupportedAffinityError(UnsupportedCapabilityError):
    def __init__(self, affinity: str):
        super().__init__(f"Unsupported load balancer affinity: {affinity}")
        self.affinity = affinity


class UnsupportedExternalIPError(UnsupportedCapabilityError):
    def __init__(self, message: str = "externalIP cannot be specified for Concerto Load Balancer"):
        super().__init__(message)


class UnsupportedNumberOfPortsError(UnsupportedCapabilityError):
    def __init__(self, count: int):
        super().__init__(f"Concerto Load Balancer only supports one single port, got {count}")
        self.count = count


class UnsupportedOperationError(UnsupportedCapabilityError):
    """The operation is not offered by the Concerto provider."""


# ── Remote operation failures ──────────────────────────────────────


class APIError(ConcertoError):
    """The Concerto API answered with an unexpected HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        path: str | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.path = path
        self.response_body = response_body


class LoadBalancerCreateError(APIError):
    """Could not create load balancer."""


class LoadBalancerDeleteError(APIError):
    """Could not delete load balancer."""


class LoadBalancerRegisterInstanceError(APIError):
    """Could not register instance with load balancer."""


class LoadBalancerDeregisterInstanceError(APIError):
    """Could not deregister instance from load balancer."""
