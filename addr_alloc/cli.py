"""Command line entry point for the address allocator.

Examples:
  addr-alloc serve --db /addresses/addr.db --port 443
  addr-alloc dump --db ./addr.db
  addr-alloc gen-certs ./key
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import AllocatorConfig
from .errors import StorageError
from .server import open_allocator, serve
from .tls import generate_dev_pki

logger = logging.getLogger("addr_alloc")


def _config(args) -> AllocatorConfig:
    return AllocatorConfig.from_env().with_overrides(
        db_path=getattr(args, "db", None),
        first=getattr(args, "first", None),
        last=getattr(args, "last", None),
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        ca_cert=getattr(args, "ca", None),
        cert=getattr(args, "cert", None),
        key=getattr(args, "key", None),
    )


def cmd_serve(args):
    """Handle serve command."""
    serve(_config(args))


def cmd_dump(args):
    """Print every allocation and the next free address."""
    config = _config(args)
    try:
        allocator = open_allocator(config)
        mappings = allocator.list()
    except StorageError as e:
        logger.error(f"Could not read allocations: {e} ({e.detail})")
        sys.exit(1)

    if args.json:
        print(json.dumps(mappings, indent=2, sort_keys=True))
        return
    for device, addr in sorted(mappings.items()):
        print(f"{device}: {addr}")
    print(f"Next free address is {allocator.next}")


def cmd_gen_certs(args):
    """Write a development CA, server and client certificate."""
    paths = generate_dev_pki(args.directory, server_name=args.server_name, client_name=args.client_name)
    for label, path in paths.items():
        print(f"{label:12} {path}")


def _add_pool_args(p):
    p.add_argument("--db", help="SQLite database path (env ADDR_ALLOC_DB_PATH)")
    p.add_argument("--first", help="First address to allocate (env ADDR_ALLOC_FIRST)")
    p.add_argument("--last", help="Exclusive upper bound of the pool (env ADDR_ALLOC_LAST)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="IPv4 address allocator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every existing allocation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_serve = subparsers.add_parser("serve", help="Serve allocations over mutual TLS")
    _add_pool_args(p_serve)
    p_serve.add_argument("--host", help="Listen address (env ADDR_ALLOC_HOST)")
    p_serve.add_argument("--port", type=int, help="Listen port (env ADDR_ALLOC_PORT)")
    p_serve.add_argument("--ca", help="CA bundle for client certificates (env ADDR_ALLOC_CA_CERT)")
    p_serve.add_argument("--cert", help="Server certificate (env ADDR_ALLOC_CERT)")
    p_serve.add_argument("--key", help="Server private key (env ADDR_ALLOC_KEY)")
    p_serve.set_defaults(func=cmd_serve)

    p_dump = subparsers.add_parser("dump", help="Print stored allocations")
    _add_pool_args(p_dump)
    p_dump.add_argument("--json", action="store_true", help="Print as a JSON object")
    p_dump.set_defaults(func=cmd_dump)

    p_certs = subparsers.add_parser("gen-certs", help="Generate a development PKI")
    p_certs.add_argument("directory", help="Output directory")
    p_certs.add_argument("--server-name", default="localhost", help="Server certificate DNS name")
    p_certs.add_argument("--client-name", default="client", help="Client certificate common name")
    p_certs.set_defaults(func=cmd_gen_certs)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
