from __future__ import annotations

from typing import Final

# Discord limits
MAX_MESSAGE_LENGTH: Final[int] = 2000

# Colors (hex values)
COLORS = {
    "info": 0x3498DB,
}

# Audit log reasons
KICK_REASON: Final[str] = "Denied on join by moderation"
JOIN_REASON: Final[str] = "New member awaiting review"
REVIEW_REASON: Final[str] = "Join request reviewed"
PROVISION_REASON: Final[str] = "Server setup"

# Private replies to the acting user
ERROR_MESSAGES = {
    "manage_roles": "You need Manage Roles to do that.",
    "manage_roles_command": "You need Manage Roles to use this.",
    "administrator": "You need Administrator to run this command.",
    "guild_only": "This command can only be used in a server.",
    "user_not_found": "User not found (may have left).",
    "already_handled": "This request has already been handled.",
    "unexpected": "Something went wrong.",
}
