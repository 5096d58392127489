"""Role names used in tokens, notification recipients and route guards."""

ADMINISTRATOR = "Administrator"
QUALITY = "Quality"
PRODUCTION = "Production"

ALL_ROLES = (ADMINISTRATOR, QUALITY, PRODUCTION)

# Recipient value addressing every user.
EVERYONE = "all"

# Sender id/name used for machine-generated notifications.
SYSTEM_SENDER_ID = "system"
SYSTEM_SENDER_NAME = "Sistema"


def dashboard_path(role: str) -> str:
    """Landing dashboard for a role, e.g. /dashboard/quality."""
    return f"/dashboard/{(role or ADMINISTRATOR).lower()}"
