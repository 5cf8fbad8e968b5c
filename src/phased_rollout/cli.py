"""Command-line interface for the phased rollout helper.

Provides subcommands for simulating a rollout run against an inventory file,
displaying saved reports, and querying package information.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    phased-rollout = "phased_rollout.cli:main"

Usage examples::

    phased-rollout simulate --config rollout.yaml --inventory site.yaml --dry-run
    phased-rollout simulate --config rollout.yaml --inventory site.yaml \\
        --save-inventory site.yaml --audit-trail history.json
    phased-rollout report --input history.json --format table
    phased-rollout info
"""

from __future__ import annotations

import argparse
import dataclasses
import datetime
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from phased_rollout.domain.enums import RolloutStatus

# Exit code for runs that end in ``error`` or ``mismatch``.
EXIT_RUN_FAILED = 2


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="phased-rollout",
        description=(
            "Phased Rollout -- widen a software deployment one wave "
            "collection at a time once enough installs have succeeded."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show package version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- simulate ----------------------------------------------------------
    sim_parser = subparsers.add_parser(
        "simulate",
        help="Run one rollout evaluation against an inventory file.",
        description=(
            "Evaluate one rollout run against an in-memory management plane "
            "loaded from a JSON or YAML inventory file."
        ),
    )
    sim_parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the rollout configuration (JSON or YAML).",
    )
    sim_parser.add_argument(
        "--inventory",
        type=str,
        required=True,
        help="Path to the inventory file (deployments, collections, include rules).",
    )
    sim_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Plan the next wave without adding include rules.",
    )
    sim_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the report as JSON instead of a table.",
    )
    sim_parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Append run log lines to this file (overrides the config's log_path).",
    )
    sim_parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Evaluate as of this ISO-8601 timestamp (naive means UTC).",
    )
    sim_parser.add_argument(
        "--save-inventory",
        type=str,
        default=None,
        help="Write the inventory, including new include rules, to this path.",
    )
    sim_parser.add_argument(
        "--audit-trail",
        type=str,
        default=None,
        help="Append the report to this JSON audit trail file.",
    )

    # -- report ------------------------------------------------------------
    report_parser = subparsers.add_parser(
        "report",
        help="Load and display a saved report or audit trail.",
        description=(
            "Load a report (JSON or YAML) or an audit trail (a JSON list of "
            "reports) and display it."
        ),
    )
    report_parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to the report or audit trail file.",
    )
    report_parser.add_argument(
        "--format",
        type=str,
        default="table",
        choices=["table", "json", "summary"],
        help="Display format. (default: table)",
    )

    # -- info --------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show package version and dependency status.",
        description="Display version, run statuses, and dependency status.",
    )

    return parser


# =========================================================================
# Subcommand handlers
# =========================================================================

def _parse_now(text: str) -> datetime.datetime:
    moment = datetime.datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment


def _cmd_simulate(args: argparse.Namespace) -> int:
    """Handle the ``simulate`` subcommand."""
    from phased_rollout.domain.events import RolloutCompleted
    from phased_rollout.graph.runner import run_rollout
    from phased_rollout.infrastructure.client import InMemoryManagementPlane
    from phased_rollout.infrastructure.config import load_config
    from phased_rollout.infrastructure.event_bus import EventBus
    from phased_rollout.presentation.console import ConsoleDashboard
    from phased_rollout.services.audit_trail import RolloutAuditTrail
    from phased_rollout.services.window import fixed_clock, utc_now

    config = load_config(args.config)
    if args.dry_run and not config.dry_run:
        config = dataclasses.replace(config, dry_run=True)

    client = InMemoryManagementPlane.load(args.inventory)

    clock = utc_now
    if args.now is not None:
        clock = fixed_clock(_parse_now(args.now))

    event_bus = None
    trail = None
    if args.audit_trail is not None:
        trail = RolloutAuditTrail.load(args.audit_trail)
        event_bus = EventBus()
        event_bus.subscribe(RolloutCompleted, trail.on_event)

    report = run_rollout(
        config,
        client,
        clock=clock,
        event_bus=event_bus,
        log_path=args.log_file,
        metadata={"inventory": str(args.inventory)},
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        ConsoleDashboard().print_report(report)

    if args.save_inventory is not None:
        client.save(args.save_inventory)

    if trail is not None:
        trail.save(args.audit_trail)

    if report.status in (RolloutStatus.ERROR, RolloutStatus.MISMATCH):
        return EXIT_RUN_FAILED
    return 0


def _cmd_report(args: argparse.Namespace) -> int:
    """Handle the ``report`` subcommand."""
    from phased_rollout.infrastructure.serialization import report_from_dict
    from phased_rollout.presentation.console import ConsoleDashboard

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        text = input_path.read_text(encoding="utf-8")
        if input_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError, OSError) as exc:
        print(f"Error reading {input_path}: {exc}", file=sys.stderr)
        return 1

    entries = data if isinstance(data, list) else [data]
    try:
        reports = [report_from_dict(item) for item in entries]
    except (ValueError, TypeError) as exc:
        print(f"Error: {input_path} is not a rollout report: {exc}", file=sys.stderr)
        return 1

    if args.format == "json":
        payload: Any = [r.to_dict() for r in reports]
        if not isinstance(data, list):
            payload = payload[0]
        print(json.dumps(payload, indent=2, default=str))
    elif args.format == "summary":
        print("\n\n".join(r.summary() for r in reports))
    else:
        dashboard = ConsoleDashboard()
        if isinstance(data, list):
            dashboard.print_history(reports)
        else:
            dashboard.print_report(reports[0])

    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from phased_rollout import __version__

    print(f"Phased Rollout v{__version__}")
    print()

    deps = {
        "langgraph": "Rollout state machine",
        "pydantic": "Management-plane record parsing",
        "yaml": "YAML configuration and inventories (PyYAML)",
        "rich": "Console dashboard",
        "tzdata": "IANA timezone data for rollout windows",
    }

    print("Dependencies:")
    for pkg, desc in deps.items():
        try:
            mod = __import__(pkg)
            version = getattr(mod, "__version__", "unknown")
            print(f"  [installed] {pkg} {version} -- {desc}")
        except ImportError:
            print(f"  [missing]   {pkg} -- {desc}")

    print()
    print("Run statuses:")
    for status in RolloutStatus:
        marker = " (success)" if status.is_success else ""
        print(f"  {status.value}{marker}")

    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from phased_rollout import __version__
        print(f"phased-rollout {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handlers: dict[str, Any] = {
        "simulate": _cmd_simulate,
        "report": _cmd_report,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
