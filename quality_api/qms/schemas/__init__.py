"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Document records stay plain dicts; the schemas here cover request bodies,
auth/users, notifications and the computed views (flows, dashboards).
"""

from .common import ErrorResponse, MessageResponse  # noqa: F401
