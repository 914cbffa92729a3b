"""Organizations ("entities") and the user membership relation."""
import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin

ADMIN_ROLE = "admin"


class Entity(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tenant grouping users and their compliance records."""

    __tablename__ = "entities"

    name: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(String, nullable=True)


class Membership(UUIDPrimaryKeyMixin, Base):
    """(user, entity, role) row granting access to an entity's resources."""

    __tablename__ = "user_entities"

    __table_args__ = (
        UniqueConstraint("user_id", "entity_id", name="uq_user_entities_user_entity"),
        Index("ix_user_entities_entity_id", "entity_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"), index=True
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("entities.id", ondelete="CASCADE", onupdate="CASCADE")
    )
    role: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
