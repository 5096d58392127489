from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from qms.db.base import Base, JSONType, TimestampMixin


class Document(TimestampMixin, Base):
    """
    Schemaless record stored under a named collection.

    The collection name plays the role of a table (``production``, ``hygiene``,
    ``quality_luminometry``...). ``data`` holds the record fields; ``cycle_id``
    is null while the record belongs to the active quality cycle and is stamped
    with the cycle id once archived.
    """
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection_cycle_id", "collection", "cycle_id"),
    )

    collection: Mapped[str] = mapped_column(Text, primary_key=True)
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    cycle_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
