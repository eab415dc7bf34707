import argparse
import json
import logging
import os
import sys

from alloc_client.allocator_client import AllocatorClient, AllocatorClientError

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger("addr_alloc.client")

DEFAULT_URL = os.environ.get("ADDR_ALLOC_URL", "https://localhost:443")


def _client(args) -> AllocatorClient:
    return AllocatorClient(args.url, cert=args.cert, key=args.key, ca_cert=args.ca)


def cmd_get(args):
    """Handle get command."""
    try:
        address = _client(args).get_address(args.device)
    except AllocatorClientError as e:
        logger.error(f"Lookup failed: {e}")
        sys.exit(1)
    print(address)


def cmd_all(args):
    """Handle all command."""
    try:
        mappings = _client(args).all()
    except AllocatorClientError as e:
        logger.error(f"Listing failed: {e}")
        sys.exit(1)
    print(json.dumps(mappings, indent=2, sort_keys=True))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Address allocator client")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Allocator URL (default: {DEFAULT_URL})")
    parser.add_argument("--cert", default=os.environ.get("ADDR_ALLOC_CLIENT_CERT"), help="Client certificate")
    parser.add_argument("--key", default=os.environ.get("ADDR_ALLOC_CLIENT_KEY"), help="Client private key")
    parser.add_argument("--ca", default=os.environ.get("ADDR_ALLOC_CA_CERT"), help="CA bundle for the server certificate")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_get = subparsers.add_parser("get", help="Get (or allocate) the address of a device")
    p_get.add_argument("device", help="Device name")
    p_get.set_defaults(func=cmd_get)

    p_all = subparsers.add_parser("all", help="List every allocation")
    p_all.set_defaults(func=cmd_all)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
