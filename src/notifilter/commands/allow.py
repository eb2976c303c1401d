"""
Notifilter Allow-List Commands

Administrative operations on the persisted allow-list. Every change is
saved atomically and broadcast as an allow-list reload.
"""

import argparse
from pathlib import Path
from typing import Any

from ..core import get_utc_timestamp
from ..core.constants import ACTION_ALLOW_LIST_CHANGED
from ..services.filtering import AllowListStore, ReloadSignal, bind_store, extract_identity


def _get_store(args: argparse.Namespace) -> AllowListStore:
    """Build the store from --file or the configured location."""
    path = getattr(args, "file", None)
    return AllowListStore(path=Path(path) if path else None)


def _connect_reload(store: AllowListStore) -> ReloadSignal:
    """Attach a reload broadcast to the store, counting deliveries."""
    signal = ReloadSignal()
    bind_store(store, signal)
    return signal


# =============================================================================
# List Command
# =============================================================================


def cmd_allow_list(args: argparse.Namespace) -> dict[str, Any]:
    """
    List allowed contacts.

    Args:
        args: Parsed arguments

    Returns:
        Result dict with the sorted allow-list
    """
    query_ts = get_utc_timestamp()
    store = _get_store(args)

    result = store.read()
    if not result.success:
        return {
            "query_timestamp": query_ts,
            "status": "error",
            "error": "storage_unavailable",
            "message": result.error,
            "file": str(store.file_path),
        }

    contacts = sorted(result.contacts)
    return {
        "query_timestamp": query_ts,
        "status": "ok",
        "file": str(store.file_path),
        "contacts": contacts,
        "count": len(contacts),
    }


# =============================================================================
# Add / Remove Commands
# =============================================================================


def cmd_allow_add(args: argparse.Namespace) -> dict[str, Any]:
    """
    Add a contact to the allow-list.

    With --from-title the argument is treated as a notification title and
    reduced to its sender identity first.

    Args:
        args: Parsed arguments with name and from_title

    Returns:
        Result dict with the updated allow-list
    """
    query_ts = get_utc_timestamp()
    name = extract_identity(args.name) if getattr(args, "from_title", False) else args.name

    store = _get_store(args)
    signal = _connect_reload(store)
    result = store.add(name)

    if not result.success:
        return {
            "query_timestamp": query_ts,
            "status": "error",
            "error": "add_failed",
            "message": result.error,
        }

    return {
        "query_timestamp": query_ts,
        "status": "ok",
        "added": name,
        "contacts": sorted(result.contacts),
        "count": len(result.contacts),
        "reload_action": ACTION_ALLOW_LIST_CHANGED,
        "reload_sent": signal.sent_count,
    }


def cmd_allow_remove(args: argparse.Namespace) -> dict[str, Any]:
    """
    Remove a contact from the allow-list.

    Args:
        args: Parsed arguments with name

    Returns:
        Result dict with the updated allow-list
    """
    query_ts = get_utc_timestamp()
    store = _get_store(args)

    current = store.read()
    was_present = current.success and args.name in current.contacts

    signal = _connect_reload(store)
    result = store.remove(args.name)

    if not result.success:
        return {
            "query_timestamp": query_ts,
            "status": "error",
            "error": "remove_failed",
            "message": result.error,
        }

    response: dict[str, Any] = {
        "query_timestamp": query_ts,
        "status": "ok",
        "removed": args.name,
        "contacts": sorted(result.contacts),
        "count": len(result.contacts),
        "reload_action": ACTION_ALLOW_LIST_CHANGED,
        "reload_sent": signal.sent_count,
    }
    if not was_present:
        response["warning"] = f"'{args.name}' was not on the allow-list"
    return response


# =============================================================================
# Parser Registration
# =============================================================================


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register allow-list command parsers."""

    allow_parser = subparsers.add_parser(
        "allow",
        help="Manage the allow-list",
        description="Manage the contacts whose notifications are allowed to alert. "
        "An empty allow-list suppresses every notification.",
    )
    allow_parser.add_argument(
        "--file",
        help="Allow-list file (defaults to NOTIFILTER_ALLOW_LIST_PATH or userdata/allow_list.json)",
    )

    allow_subparsers = allow_parser.add_subparsers(
        dest="allow_command",
        help="Allow-list commands",
    )

    # allow list
    list_parser = allow_subparsers.add_parser("list", help="List allowed contacts")
    list_parser.set_defaults(func=cmd_allow_list)

    # allow add <name> [--from-title]
    add_parser = allow_subparsers.add_parser("add", help="Allow a contact")
    add_parser.add_argument("name", help="Contact name (stored exactly as given)")
    add_parser.add_argument(
        "--from-title",
        action="store_true",
        help="Treat the argument as a notification title and keep only its first word",
    )
    add_parser.set_defaults(func=cmd_allow_add)

    # allow remove <name>
    remove_parser = allow_subparsers.add_parser("remove", help="Remove a contact")
    remove_parser.add_argument("name", help="Contact name")
    remove_parser.set_defaults(func=cmd_allow_remove)
