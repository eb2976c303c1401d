"""
Notifilter Constants

Shared constants used by the filtering service, its store, and the CLI.
"""

# =============================================================================
# Source Application
# =============================================================================

# Package name of the messaging app whose notifications are filtered
DEFAULT_SOURCE_APP = "com.tencent.mm"

# =============================================================================
# Persistence
# =============================================================================

ALLOW_LIST_FILENAME = "allow_list.json"

# Key of the allow-list record inside the persisted document
ALLOW_LIST_KEY = "allowed_contacts"

# =============================================================================
# Alert Policy
# =============================================================================

# Delay before the interruption filter is restored after a suppression
RESTORE_DELAY_SECONDS = 0.5

# =============================================================================
# Reload Broadcast
# =============================================================================

ACTION_ALLOW_LIST_CHANGED = "notifilter.action.ALLOW_LIST_CHANGED"
