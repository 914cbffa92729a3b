"""RGPD records: processing register, access requests and breaches."""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class EntityOwnedMixin:
    """Foreign key to the owning entity; rows go away with it."""

    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("entities.id", ondelete="CASCADE", onupdate="CASCADE"), index=True
    )


class RegisterEntry(UUIDPrimaryKeyMixin, EntityOwnedMixin, TimestampMixin, Base):
    """One processing activity in the entity's lightweight register."""

    __tablename__ = "rgpd_register"

    processing_name: Mapped[str] = mapped_column(String)
    purpose: Mapped[str] = mapped_column(Text)
    legal_basis: Mapped[str] = mapped_column(String)
    data_categories: Mapped[list[str]] = mapped_column(JSON, default=list)
    data_subjects: Mapped[list[str]] = mapped_column(JSON, default=list)
    recipients: Mapped[list[str]] = mapped_column(JSON, default=list)
    retention_period: Mapped[str | None] = mapped_column(String, nullable=True)
    security_measures: Mapped[str | None] = mapped_column(Text, nullable=True)


class AccessRequest(UUIDPrimaryKeyMixin, EntityOwnedMixin, TimestampMixin, Base):
    """A data-subject request (access, rectification, erasure, ...)."""

    __tablename__ = "rgpd_access_requests"

    __table_args__ = (Index("ix_rgpd_access_requests_entity_status", "entity_id", "status"),)

    requester_name: Mapped[str] = mapped_column(String)
    requester_email: Mapped[str] = mapped_column(String)
    request_type: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String)
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class Breach(UUIDPrimaryKeyMixin, EntityOwnedMixin, TimestampMixin, Base):
    """Personal data breach log entry."""

    __tablename__ = "rgpd_breaches"

    breach_date: Mapped[datetime] = mapped_column(UTCDateTime)
    discovery_date: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    description: Mapped[str] = mapped_column(Text)
    data_categories_affected: Mapped[list[str]] = mapped_column(JSON, default=list)
    number_of_subjects: Mapped[int | None] = mapped_column(Integer, nullable=True)
    severity: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String)
    containment_measures: Mapped[str | None] = mapped_column(Text, nullable=True)
    notification_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    authority_notified: Mapped[bool] = mapped_column(Boolean, default=False)
    subjects_notified: Mapped[bool] = mapped_column(Boolean, default=False)
