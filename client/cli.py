import argparse
import logging
import os
import sys

from client.api import CoordinatorClient
from tether_core import AllocationExhausted, Role, Transport, UpstreamSnapshot

# Configure Logging
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger("tether")

DEFAULT_COORD_URL = os.environ.get("TETHER_COORD_URL", "http://localhost:8790")


def cmd_request(args):
    """Handle request command."""
    client = CoordinatorClient(args.url)
    try:
        address = client.request_address(args.role, reuse_last=args.reuse_last)
    except AllocationExhausted as e:
        logger.error(f"No free prefix: {e}")
        sys.exit(2)
    except RuntimeError as e:
        logger.error(f"Request Failed: {e}")
        sys.exit(1)
    print(address)


def cmd_release(args):
    client = CoordinatorClient(args.url)
    try:
        released = client.release(args.role)
    except RuntimeError as e:
        logger.error(f"Release Failed: {e}")
        sys.exit(1)
    if not released:
        logger.info(f"{args.role} held no reservation")


def cmd_upstream(args):
    """Report an upstream network's addresses."""
    client = CoordinatorClient(args.url)
    snapshot = UpstreamSnapshot(
        network_id=args.network,
        transport=Transport.parse(args.transport),
        addresses=args.address or [],
    )
    try:
        conflicts = client.report_upstream(snapshot)
    except RuntimeError as e:
        logger.error(f"Upstream Update Failed: {e}")
        sys.exit(1)
    for role in conflicts:
        logger.warning(f"Prefix conflict on {role.value}")


def cmd_drop_upstream(args):
    client = CoordinatorClient(args.url)
    try:
        client.remove_upstream(args.network)
    except RuntimeError as e:
        logger.error(f"Upstream Removal Failed: {e}")
        sys.exit(1)


def cmd_conflicts(args):
    client = CoordinatorClient(args.url)
    try:
        conflicts = client.drain_conflicts()
    except RuntimeError as e:
        logger.error(f"Fetching Conflicts Failed: {e}")
        sys.exit(1)
    for c in conflicts:
        print(f"{c.role.value}\t{c.prefix}\t{c.network_id}")


def cmd_status(args):
    """Show reservations and upstream prefixes."""
    client = CoordinatorClient(args.url)
    try:
        reservations = client.reservations()
        upstreams = client.upstreams()
    except RuntimeError as e:
        logger.error(f"Status Failed: {e}")
        sys.exit(1)

    print("Downstreams:")
    for r in reservations:
        print(f"  {r.role.value:<10} {r.address}")
    print("Upstreams:")
    for network_id, prefixes in upstreams.items():
        print(f"  {network_id:<10} {', '.join(prefixes)}")


def main():
    parser = argparse.ArgumentParser(description="Private downstream address coordinator client")
    parser.add_argument("--url", default=DEFAULT_COORD_URL, help=f"Coordinator URL (default: {DEFAULT_COORD_URL})")
    subparsers = parser.add_subparsers(dest="command", required=True)
    roles = [r.value for r in Role]

    p_request = subparsers.add_parser("request", help="Request a downstream address")
    p_request.add_argument("role", choices=roles)
    p_request.add_argument("--reuse-last", action="store_true", help="Prefer the role's previous address")
    p_request.set_defaults(func=cmd_request)

    p_release = subparsers.add_parser("release", help="Release a downstream address")
    p_release.add_argument("role", choices=roles)
    p_release.set_defaults(func=cmd_release)

    p_upstream = subparsers.add_parser("upstream", help="Report upstream network addresses")
    p_upstream.add_argument("network", help="Upstream network id")
    p_upstream.add_argument("--transport", choices=[t.value for t in Transport], help="Omit when unknown")
    p_upstream.add_argument("--address", "-a", action="append", help="address/prefixlen, repeatable")
    p_upstream.set_defaults(func=cmd_upstream)

    p_drop = subparsers.add_parser("drop-upstream", help="Forget an upstream network")
    p_drop.add_argument("network")
    p_drop.set_defaults(func=cmd_drop_upstream)

    p_conflicts = subparsers.add_parser("conflicts", help="Drain pending prefix conflicts")
    p_conflicts.set_defaults(func=cmd_conflicts)

    p_status = subparsers.add_parser("status", help="Show coordinator state")
    p_status.set_defaults(func=cmd_status)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
