"""CLI entrypoint for map-leads."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import Any

from .config import DEFAULT_SUPERADMIN_EMAIL, PLAN_LIMITS, ServiceConfig
from .errors import ConfigError, MapLeadsError
from .io_json import load_state, save_state
from .lifecycle import ACTIONS, handle_admin_action
from .logging_utils import configure_logging, get_logger
from .models import Identity
from .orchestrator import run_search_with_defaults


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Map Leads - quota-checked place searches and account administration."
    )
    parser.add_argument(
        "--state", default="map_leads_state.json", help="JSON state file (collections + identities)."
    )
    parser.add_argument("--uid", required=True, help="Verified caller uid.")
    parser.add_argument("--email", help="Verified caller email.")
    parser.add_argument("--apify-token", help="Apify token (or set APIFY_TOKEN env var).")
    parser.add_argument(
        "--superadmin-email", help="Superadmin email (or set SUPERADMIN_EMAIL env var)."
    )
    parser.add_argument(
        "--progress", action="store_true", help="Show a tqdm progress bar during enrichment."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command", required=True)
    run_parser = commands.add_parser("run-search", help="Run one queued search.")
    run_parser.add_argument("--search-id", required=True, help="Id of the queued search.")

    admin_parser = commands.add_parser("admin", help="Superadmin account actions.")
    admin_parser.add_argument("--action", required=True, choices=ACTIONS)
    admin_parser.add_argument("--user-id", help="Target account id.")
    admin_parser.add_argument("--plan", choices=sorted(PLAN_LIMITS), help="Plan for set_plan.")
    admin_parser.add_argument("--query", help="Email/name filter for list_users.")
    admin_parser.add_argument("--limit", type=int, help="Page size for list_users.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI input."""
    return build_parser().parse_args(argv)


def namespace_to_config(args: argparse.Namespace) -> ServiceConfig:
    """Convert CLI args and environment to a validated ServiceConfig."""
    logger = get_logger()
    provider_token = args.apify_token or os.getenv("APIFY_TOKEN")
    superadmin_email = (
        args.superadmin_email or os.getenv("SUPERADMIN_EMAIL") or DEFAULT_SUPERADMIN_EMAIL
    )
    if not provider_token:
        logger.info("No Apify token configured. Searches run in demo mode.")
    return ServiceConfig(
        provider_token=provider_token,
        superadmin_email=superadmin_email.lower(),
        show_progress=bool(args.progress),
    )


def _admin_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {"action": args.action}
    for key in ("user_id", "plan", "query", "limit"):
        value = getattr(args, key)
        if value is not None:
            payload[key] = value
    return payload


def _emit(payload: dict[str, Any]) -> None:
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()
    try:
        config = namespace_to_config(args)
        store, identities = load_state(args.state)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    requester = Identity(uid=args.uid, email=args.email)
    try:
        if args.command == "run-search":
            result = run_search_with_defaults(
                args.search_id,
                requester=requester,
                store=store,
                config=config,
                logger=logger,
            ).to_dict()
        else:
            result = handle_admin_action(
                _admin_payload(args),
                requester=requester,
                store=store,
                identities=identities,
                config=config,
                logger=logger,
            )
    except MapLeadsError as exc:
        logger.error("Request failed (%d): %s", exc.status_code, exc.message)
        _emit({"error": exc.message})
        return 1
    finally:
        save_state(args.state, store, identities)

    _emit(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
