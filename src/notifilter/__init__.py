"""
Notifilter - Messaging Notification Allow-List Filter

Lets notifications from allow-listed senders of one messaging app through
and withdraws every other notification from that app before it can alert.

Usage as library:
    from notifilter.services.filtering import AllowListStore, ListenerSupervisor

    store = AllowListStore()
    store.add("老婆")

Usage as CLI:
    python -m notifilter allow add 老婆
    python -m notifilter filter check "同事 说了什么"
    python -m notifilter filter simulate "老婆 - [语音] 2" "同事 说了什么"

Package structure:
    notifilter/
    ├── core/           # Configuration, logging, constants
    ├── commands/       # CLI command implementations
    └── services/
        └── filtering/  # Allow-list store, engine, policy controller
"""

__version__ = "1.0.0"

from .core import get_logger, get_settings, get_utc_timestamp

__all__ = [
    "__version__",
    "get_logger",
    "get_settings",
    "get_utc_timestamp",
]
