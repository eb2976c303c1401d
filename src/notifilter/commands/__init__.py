"""
Notifilter Commands

CLI command implementations. Each module registers its own subcommands.
"""

from . import allow, filtering

__all__ = ["allow", "filtering"]
