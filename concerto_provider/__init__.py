"""Concerto cloud provider: instances and TCP load balancers over the Concerto API."""

__version__ = "0.1.0"
