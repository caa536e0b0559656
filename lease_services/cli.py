"""
lease-lifecycle -- operator commands for the lease kernel.

    lease-lifecycle init-db
    lease-lifecycle scan --as-of 2025-06-30 --json
    lease-lifecycle show 5f0c8a4e-...

``--config`` points at a YAML file read by ``load_lease_config``;
``--db-url`` overrides its ``database_url``.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace
from datetime import date
from typing import Sequence
from uuid import UUID

from lease_kernel.config import LeaseConfig, load_lease_config
from lease_kernel.db.engine import create_tables, init_engine_from_url
from lease_kernel.exceptions import LeaseKernelError
from lease_kernel.logging_config import configure_logging, get_logger
from lease_services.lease_api import LeaseApi, build_lease_api

logger = get_logger("services.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lease-lifecycle",
        description="Lease lifecycle maintenance commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  lease-lifecycle init-db --db-url sqlite:///leases.db\n"
            "  lease-lifecycle scan --as-of 2025-06-30\n"
            "  lease-lifecycle show 5f0c8a4e-... --json\n"
        ),
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--db-url", type=str, default=None,
        help="Database URL, overrides database_url from the config",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the lease tables")

    scan = sub.add_parser("scan", help="Run the expiration scan")
    scan.add_argument(
        "--as-of", type=date.fromisoformat, default=None,
        help="Evaluate as of this date (YYYY-MM-DD, default: now)",
    )
    scan.add_argument(
        "--json", action="store_true",
        help="Print emitted events as JSON",
    )

    show = sub.add_parser("show", help="Print a single lease")
    show.add_argument("lease_id", type=str, help="Lease UUID")
    show.add_argument(
        "--json", action="store_true",
        help="Print the full record as JSON",
    )
    return parser


def _load_config(args: argparse.Namespace) -> LeaseConfig:
    config = load_lease_config(args.config)
    if args.db_url:
        config = replace(config, database_url=args.db_url)
    return config


def _cmd_init_db(config: LeaseConfig) -> int:
    init_engine_from_url(config.database_url)
    create_tables()
    print(f"  Lease tables ready at {config.database_url}")
    return 0


def _cmd_scan(api: LeaseApi, args: argparse.Namespace) -> int:
    events = api.scan_expirations(args.as_of)
    if args.json:
        print(json.dumps([asdict(e) for e in events], indent=2, default=str))
        return 0

    if not events:
        print("  No expiring or expired leases.")
        return 0
    for event in events:
        print(
            f"  {event.lease_id}  {event.classification.value:<14}"
            f"  days={event.days_until_expiry:>4}  end_date={event.end_date}"
        )
    return 0


def _cmd_show(api: LeaseApi, args: argparse.Namespace) -> int:
    try:
        lease_id = UUID(args.lease_id)
    except ValueError as exc:
        print(f"  ERROR: Invalid UUID: {exc}", file=sys.stderr)
        return 1

    lease = api.get_lease(lease_id)
    if args.json:
        print(json.dumps(asdict(lease), indent=2, default=str))
        return 0

    print(f"  Lease {lease.id}")
    print(f"    property   {lease.property_id}")
    print(f"    landlord   {lease.landlord_id}  signed={lease.landlord_signature is not None}")
    print(f"    tenant     {lease.tenant_id}  signed={lease.tenant_signature is not None}")
    print(f"    term       {lease.start_date} .. {lease.end_date}")
    print(f"    rent       {lease.rent_amount}  deposit={lease.deposit}")
    print(f"    status     {lease.status.value}  version={lease.version}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = _load_config(args)
    except (LeaseKernelError, OSError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level.upper())
    logger.info("lease_cli_command", extra={"command": args.command})

    try:
        if args.command == "init-db":
            return _cmd_init_db(config)
        api = build_lease_api(config)
        if args.command == "scan":
            return _cmd_scan(api, args)
        return _cmd_show(api, args)
    except LeaseKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
