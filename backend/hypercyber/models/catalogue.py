"""Global asset catalogue and the generic relation table linking its items."""
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class MetadataMixin:
    """Free-form JSON blob; `metadata` itself is reserved by the declarative base."""

    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)


class Endpoint(UUIDPrimaryKeyMixin, MetadataMixin, TimestampMixin, Base):
    """A machine, program, URL or API the organization depends on."""

    __tablename__ = "catalogue_endpoints"

    name: Mapped[str] = mapped_column(String)
    endpoint_type: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)


class LicenseKey(UUIDPrimaryKeyMixin, MetadataMixin, TimestampMixin, Base):
    """License given either as a string value or as an uploaded file."""

    __tablename__ = "catalogue_license_keys"

    name: Mapped[str] = mapped_column(String)
    license_type: Mapped[str] = mapped_column(String)
    key_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_path: Mapped[str | None] = mapped_column(String, nullable=True)
    file_name: Mapped[str | None] = mapped_column(String, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    storage_type: Mapped[str] = mapped_column(String, default="local")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class SoftwareVersion(UUIDPrimaryKeyMixin, MetadataMixin, TimestampMixin, Base):
    __tablename__ = "catalogue_software_versions"

    name: Mapped[str] = mapped_column(String)
    version: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    release_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    end_of_life: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class EncryptionAlgorithm(UUIDPrimaryKeyMixin, MetadataMixin, TimestampMixin, Base):
    __tablename__ = "catalogue_encryption_algorithms"

    name: Mapped[str] = mapped_column(String)
    algorithm_type: Mapped[str] = mapped_column(String)
    key_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    standard: Mapped[str | None] = mapped_column(String, nullable=True)


class CatalogueRelation(UUIDPrimaryKeyMixin, Base):
    """Typed edge between any two (type, id) pairs.

    There are no foreign keys here: the types are opaque strings, so the
    integrity of the link graph is up to the client.
    """

    __tablename__ = "catalogue_relations"

    __table_args__ = (
        Index("ix_catalogue_relations_source", "source_type", "source_id"),
        Index("ix_catalogue_relations_target", "target_type", "target_id"),
    )

    source_type: Mapped[str] = mapped_column(String)
    source_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    target_type: Mapped[str] = mapped_column(String)
    target_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    relation_type: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
