"""
Notifilter Filter Commands

Dry-run checks and full simulations of the filtering engine against an
in-memory device, plus a status report.
"""

import argparse
import asyncio
from pathlib import Path
from typing import Any

from ..core import format_duration_ms, get_settings, get_utc_timestamp
from ..core.constants import RESTORE_DELAY_SECONDS
from ..services.filtering import (
    AlertPolicyController,
    AllowListStore,
    FilterEngine,
    IncomingEvent,
    InterruptionFilter,
    SimulatedDevice,
)


def _get_store(args: argparse.Namespace) -> AllowListStore:
    path = getattr(args, "file", None)
    return AllowListStore(path=Path(path) if path else None)


def _source_app(args: argparse.Namespace) -> str:
    return getattr(args, "source_app", None) or get_settings().source_app


# =============================================================================
# Check Command
# =============================================================================


def cmd_filter_check(args: argparse.Namespace) -> dict[str, Any]:
    """
    Show the decision for a notification title without side effects.

    Args:
        args: Parsed arguments with title and optional source_app

    Returns:
        Result dict with decision, identity, and reason
    """
    query_ts = get_utc_timestamp()
    settings = get_settings()
    store = _get_store(args)

    engine = FilterEngine(
        source_app=settings.source_app,
        store=store,
        controller=AlertPolicyController(surface=SimulatedDevice()),
        cancel=lambda key: None,
    )
    event = IncomingEvent(source_app=_source_app(args), raw_title=args.title)
    outcome = engine.evaluate(event)

    return {
        "query_timestamp": query_ts,
        "status": "ok",
        "title": args.title,
        "source_app": event.source_app,
        **outcome.to_dict(),
    }


# =============================================================================
# Simulate Command
# =============================================================================


async def _simulate(
    store: AllowListStore,
    source_app: str,
    titles: list[str],
    device: SimulatedDevice,
) -> list[dict[str, Any]]:
    """Feed titles through a full engine and wait for every restore."""
    controller = AlertPolicyController(surface=device)
    engine = FilterEngine(
        source_app=source_app,
        store=store,
        controller=controller,
        cancel=device.cancel_notification,
    )

    results = []
    for index, title in enumerate(titles):
        event = IncomingEvent(
            source_app=source_app,
            raw_title=title,
            event_key=f"sim|{index}",
        )
        outcome = engine.handle(event)
        results.append(
            {
                "event_key": event.event_key,
                "title": title,
                **outcome.to_dict(),
                "interruption_filter_after": device.interruption_filter.value,
            }
        )

    # Let the last scheduled restore fire
    await asyncio.sleep(controller.restore_delay + 0.05)
    controller.close()
    return results


def cmd_filter_simulate(args: argparse.Namespace) -> dict[str, Any]:
    """
    Run notification titles through the engine against a simulated device.

    Args:
        args: Parsed arguments with titles, initial_mode, no_policy_access

    Returns:
        Result dict with per-event decisions and the final device state
    """
    query_ts = get_utc_timestamp()
    settings = get_settings()

    try:
        initial = InterruptionFilter(args.initial_mode)
    except ValueError:
        return {
            "query_timestamp": query_ts,
            "status": "error",
            "error": "invalid_mode",
            "message": f"Unknown interruption filter: {args.initial_mode}",
        }

    device = SimulatedDevice(
        interruption_filter=initial,
        policy_access=not args.no_policy_access,
    )
    events = asyncio.run(_simulate(_get_store(args), settings.source_app, args.titles, device))

    return {
        "query_timestamp": query_ts,
        "status": "ok",
        "source_app": settings.source_app,
        "restore_delay_ms": round(RESTORE_DELAY_SECONDS * 1000),
        "events": events,
        "cancelled": device.cancelled,
        "filter_history": [mode.value for mode in device.filter_history],
        "initial_interruption_filter": initial.value,
        "final_interruption_filter": device.interruption_filter.value,
    }


# =============================================================================
# Status Command
# =============================================================================


def cmd_status(args: argparse.Namespace) -> dict[str, Any]:
    """Show configuration and allow-list status."""
    query_ts = get_utc_timestamp()
    settings = get_settings()
    store = _get_store(args)
    result = store.read()

    return {
        "query_timestamp": query_ts,
        "status": "ok",
        "source_app": settings.source_app,
        "log_level": settings.effective_log_level,
        "restore_delay": format_duration_ms(RESTORE_DELAY_SECONDS),
        "allow_list": {
            "file": str(store.file_path),
            "exists": store.file_path.exists(),
            "readable": result.success,
            "count": len(result.contacts),
            "error": result.error,
        },
        # An empty or unreadable allow-list suppresses everything
        "suppress_all": not result.contacts,
    }


# =============================================================================
# Parser Registration
# =============================================================================


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register filter and status command parsers."""

    filter_parser = subparsers.add_parser(
        "filter",
        help="Check or simulate filtering decisions",
    )
    filter_parser.add_argument("--file", help="Allow-list file")

    filter_subparsers = filter_parser.add_subparsers(
        dest="filter_command",
        help="Filter commands",
    )

    # filter check <title> [--source-app APP]
    check_parser = filter_subparsers.add_parser(
        "check",
        help="Show the decision for a title (no side effects)",
    )
    check_parser.add_argument("title", help="Notification title")
    check_parser.add_argument(
        "--source-app",
        help="Source application of the notification (defaults to the filtered app)",
    )
    check_parser.set_defaults(func=cmd_filter_check)

    # filter simulate <title>... [--initial-mode MODE] [--no-policy-access]
    simulate_parser = filter_subparsers.add_parser(
        "simulate",
        help="Run titles through the engine against a simulated device",
    )
    simulate_parser.add_argument("titles", nargs="+", help="Notification titles, in arrival order")
    simulate_parser.add_argument(
        "--initial-mode",
        default=InterruptionFilter.ALL.value,
        choices=[mode.value for mode in InterruptionFilter if mode != InterruptionFilter.UNKNOWN],
        help="Interruption filter before the first event (default: all)",
    )
    simulate_parser.add_argument(
        "--no-policy-access",
        action="store_true",
        help="Simulate a device without interruption policy access (cancel-only)",
    )
    simulate_parser.set_defaults(func=cmd_filter_simulate)

    # status
    status_parser = subparsers.add_parser("status", help="Show configuration and allow-list status")
    status_parser.add_argument("--file", help="Allow-list file")
    status_parser.set_defaults(func=cmd_status)
