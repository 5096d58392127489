"""
ORM models: the generic document table, users and notifications.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .documents import Document  # noqa: F401
from .notifications import Notification  # noqa: F401
from .security import User  # noqa: F401
