"""Argument parsing, configuration loading, and provider commands."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from typing import Any

from .config import load_config
from .exceptions import ConcertoError, ConfigError
from .logging_config import configure_logging
from .provider import ConcertoCloud, ServicePort, build_provider

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concerto-provider",
        description="Manage Concerto instances and TCP load balancers",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and exit",
    )

    sub = parser.add_subparsers(dest="command")

    instances = sub.add_parser("instances", help="List instance names")
    instances.add_argument("--filter", default=".*", help="Regular expression on instance names")

    instance = sub.add_parser("instance", help="Show one instance")
    instance.add_argument("name")

    lb_get = sub.add_parser("lb-get", help="Show a load balancer's status")
    lb_get.add_argument("name")

    lb_ensure = sub.add_parser("lb-ensure", help="Create or converge a load balancer")
    lb_ensure.add_argument("name")
    lb_ensure.add_argument("--port", type=int, required=True, help="Port exposed by the load balancer")
    lb_ensure.add_argument("--node-port", type=int, required=True, help="Port on each backend host")
    lb_ensure.add_argument(
        "--host", dest="hosts", action="append", default=[], metavar="HOST",
        help="Backend instance name (repeatable)",
    )

    lb_update = sub.add_parser("lb-update", help="Converge an existing load balancer's members")
    lb_update.add_argument("name")
    lb_update.add_argument("hosts", nargs="*", help="Backend instance names")

    lb_delete = sub.add_parser("lb-delete", help="Delete a load balancer if it exists")
    lb_delete.add_argument("name")

    return parser


def run_command(provider: ConcertoCloud, args: argparse.Namespace) -> Any:
    """Execute one subcommand and return a JSON-serializable result."""
    if args.command == "instances":
        return provider.list_instances(args.filter)

    if args.command == "instance":
        resources = provider.node_resources(args.name)
        return {
            "name": args.name,
            "id": provider.instance_id(args.name),
            "addresses": [a.address for a in provider.node_addresses(args.name)],
            "cpu_millicores": resources.cpu_millicores,
            "memory_bytes": resources.memory_bytes,
        }

    if args.command == "lb-get":
        status, exists = provider.get_tcp_load_balancer(args.name)
        return {"name": args.name, "exists": exists, "status": status.to_dict() if status else None}

    if args.command == "lb-ensure":
        port = ServicePort(port=args.port, node_port=args.node_port)
        status = provider.ensure_tcp_load_balancer(args.name, [port], args.hosts)
        return {"name": args.name, "status": status.to_dict()}

    if args.command == "lb-update":
        plan = provider.update_tcp_load_balancer(args.name, args.hosts)
        return {"name": args.name, "removed": sorted(plan.to_remove), "added": sorted(plan.to_add)}

    if args.command == "lb-delete":
        provider.ensure_tcp_load_balancer_deleted(args.name)
        return {"name": args.name, "deleted": True}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    if args.command is None:
        parser.print_usage(sys.stderr)
        return 2

    provider = build_provider(config)

    try:
        result = run_command(provider, args)
    except (ConcertoError, re.error) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
