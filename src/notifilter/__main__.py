"""
Notifilter CLI Entry Point

Run with: python -m notifilter <command> [args]

Every command prints one JSON document. The exit status is 0 on success,
1 when the document carries an "error" key, and 130 on Ctrl-C.
"""

import argparse
import json
import sys
from typing import Any, Optional

from .core import get_utc_timestamp

HELP_TEXT = """
═══════════════════════════════════════════════════════════════════
Notifilter - Messaging Notification Allow-List Filter
───────────────────────────────────────────────────────────────────

Allow-List Commands:
  allow list                 List allowed contacts
  allow add <name>           Allow a contact (stored exactly as given)
                             --from-title: keep only the title's first word
  allow remove <name>        Remove a contact
                             All allow commands accept --file <path>

Filter Commands:
  filter check <title>       Decision for a title, no side effects
                             --source-app <app>: override the event source
  filter simulate <title>... Run titles through the engine on a
                             simulated device and report cancellations
                             --initial-mode all|priority|none|alarms
                             --no-policy-access: cancel-only fallback

Other Commands:
  status                     Configuration and allow-list status
  help                       Show this message

Examples:
  python -m notifilter allow add 老婆
  python -m notifilter allow add "老婆 - [语音] 2" --from-title
  python -m notifilter filter check "同事 说了什么"
  python -m notifilter filter simulate "老婆 - [语音] 2" "同事 说了什么"

Environment:
  NOTIFILTER_SOURCE_APP      Filtered application (default com.tencent.mm)
  NOTIFILTER_ALLOW_LIST_PATH Allow-list file
  NOTIFILTER_LOG_LEVEL       DEBUG, INFO, WARNING, ERROR, CRITICAL
═══════════════════════════════════════════════════════════════════
"""


def output_json(data: dict) -> None:
    # Contact names are usually non-ASCII; keep them readable
    print(json.dumps(data, indent=2, ensure_ascii=False))


def error_result(message: str, error_type: str, **details: Any) -> dict:
    """Build the JSON document for a failure raised outside a command."""
    return {
        "query_timestamp": get_utc_timestamp(),
        "status": "error",
        "error": error_type,
        "message": message,
        **details,
    }


def cmd_help(args: argparse.Namespace) -> dict:
    print(HELP_TEXT)
    return {}


def build_parser() -> argparse.ArgumentParser:
    """Parser with every command module's subcommands registered."""
    from .commands import allow, filtering

    parser = argparse.ArgumentParser(
        prog="notifilter",
        description="Allow-list filter for messaging notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("help", help="Show help message").set_defaults(func=cmd_help)
    allow.register_parsers(subparsers)
    filtering.register_parsers(subparsers)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, run one command, print its result."""
    args = build_parser().parse_args(argv)

    if args.command is None:
        cmd_help(args)
        return 0

    handler = getattr(args, "func", None)
    if handler is None:
        # "allow" or "filter" given without a subcommand
        result = error_result(
            f"Missing subcommand for: {args.command}",
            "unknown_command",
            hint="Run 'notifilter help' for usage",
        )
    else:
        try:
            result = handler(args)
        except KeyboardInterrupt:
            print("\nInterrupted", file=sys.stderr)
            return 130
        except Exception as e:
            result = error_result(str(e), "command_error", command=args.command)

    if result:
        output_json(result)
    return 1 if "error" in result else 0


if __name__ == "__main__":
    sys.exit(main())
