"""Pydantic schemas used across the backend API."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from pydantic.networks import validate_email

ORM_CONFIG = {"from_attributes": True}


def normalize_email(value: str) -> str:
    """Canonical form used to store and look up user emails.

    Same normalization `EmailStr` applies (domain lowercased). Strings that are
    not valid addresses are returned unchanged so they simply never match.
    """

    try:
        return validate_email(value)[1]
    except ValueError:
        return value


def _metadata_field() -> Any:
    # ORM rows expose the JSON column as `metadata_`, request bodies as `metadata`.
    return Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))


# --------------------------------------------------------------------------
# Auth
# --------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Credentials supplied during login."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)


class RegisterRequest(BaseModel):
    """Payload for user registration."""

    email: EmailStr
    password: str = Field(min_length=1)
    first_name: str | None = None
    last_name: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Public representation of a user."""

    id: uuid.UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None

    model_config = ORM_CONFIG


class AuthResponse(BaseModel):
    token: str
    refresh_token: str
    user: UserInfo


class TokenResponse(BaseModel):
    token: str


# --------------------------------------------------------------------------
# Entities
# --------------------------------------------------------------------------


class EntityCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None


class EntityUpdate(BaseModel):
    """Partial update; absent or null fields keep their stored value."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


class EntityRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


class EntityMember(BaseModel):
    """Membership row joined with the member's contact fields."""

    id: uuid.UUID
    user_id: uuid.UUID
    entity_id: uuid.UUID
    role: str
    email: str
    first_name: str | None = None
    last_name: str | None = None


# --------------------------------------------------------------------------
# RGPD: processing register
# --------------------------------------------------------------------------


class RegisterEntryCreate(BaseModel):
    processing_name: str
    purpose: str
    legal_basis: str
    data_categories: list[str] = Field(default_factory=list)
    data_subjects: list[str] = Field(default_factory=list)
    recipients: list[str] = Field(default_factory=list)
    retention_period: str | None = None
    security_measures: str | None = None


class RegisterEntryUpdate(BaseModel):
    processing_name: str | None = None
    purpose: str | None = None
    legal_basis: str | None = None
    data_categories: list[str] | None = None
    data_subjects: list[str] | None = None
    recipients: list[str] | None = None
    retention_period: str | None = None
    security_measures: str | None = None


class RegisterEntryRead(RegisterEntryCreate):
    id: uuid.UUID
    entity_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


# --------------------------------------------------------------------------
# RGPD: data-subject access requests
# --------------------------------------------------------------------------


class AccessRequestCreate(BaseModel):
    requester_name: str
    requester_email: str
    request_type: str
    description: str | None = None


class AccessRequestUpdate(BaseModel):
    requester_name: str | None = None
    requester_email: str | None = None
    request_type: str | None = None
    description: str | None = None
    status: str | None = None
    response: str | None = None


class AccessRequestRespond(BaseModel):
    status: str
    response: str | None = None


class AccessRequestRead(AccessRequestCreate):
    id: uuid.UUID
    entity_id: uuid.UUID
    status: str
    response: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    model_config = ORM_CONFIG


# --------------------------------------------------------------------------
# RGPD: breaches
# --------------------------------------------------------------------------


class BreachCreate(BaseModel):
    breach_date: datetime
    discovery_date: datetime
    description: str
    data_categories_affected: list[str] = Field(default_factory=list)
    number_of_subjects: int | None = None
    severity: str
    containment_measures: str | None = None


class BreachUpdate(BaseModel):
    breach_date: datetime | None = None
    discovery_date: datetime | None = None
    description: str | None = None
    data_categories_affected: list[str] | None = None
    number_of_subjects: int | None = None
    severity: str | None = None
    status: str | None = None
    containment_measures: str | None = None
    notification_date: datetime | None = None
    authority_notified: bool | None = None
    subjects_notified: bool | None = None


class BreachRead(BreachCreate):
    id: uuid.UUID
    entity_id: uuid.UUID
    status: str
    notification_date: datetime | None = None
    authority_notified: bool
    subjects_notified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


# --------------------------------------------------------------------------
# Catalogue
# --------------------------------------------------------------------------


class EndpointCreate(BaseModel):
    name: str
    endpoint_type: str
    description: str | None = None
    address: str | None = None
    metadata: dict[str, Any] | None = None


class EndpointUpdate(BaseModel):
    name: str | None = None
    endpoint_type: str | None = None
    description: str | None = None
    address: str | None = None
    metadata: dict[str, Any] | None = None


class EndpointRead(BaseModel):
    id: uuid.UUID
    name: str
    endpoint_type: str
    description: str | None = None
    address: str | None = None
    metadata: dict[str, Any] | None = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


class LicenseKeyCreate(BaseModel):
    name: str
    license_type: str
    key_value: str | None = None
    description: str | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class LicenseKeyUpdate(BaseModel):
    name: str | None = None
    license_type: str | None = None
    key_value: str | None = None
    description: str | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class LicenseKeyRead(LicenseKeyCreate):
    id: uuid.UUID
    metadata: dict[str, Any] | None = _metadata_field()
    file_path: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    storage_type: str
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


class SoftwareVersionCreate(BaseModel):
    name: str
    version: str
    description: str | None = None
    release_date: datetime | None = None
    end_of_life: datetime | None = None
    metadata: dict[str, Any] | None = None


class SoftwareVersionUpdate(BaseModel):
    name: str | None = None
    version: str | None = None
    description: str | None = None
    release_date: datetime | None = None
    end_of_life: datetime | None = None
    metadata: dict[str, Any] | None = None


class SoftwareVersionRead(BaseModel):
    id: uuid.UUID
    name: str
    version: str
    description: str | None = None
    release_date: datetime | None = None
    end_of_life: datetime | None = None
    metadata: dict[str, Any] | None = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


class EncryptionAlgorithmCreate(BaseModel):
    name: str
    algorithm_type: str
    key_size: int | None = None
    description: str | None = None
    standard: str | None = None
    metadata: dict[str, Any] | None = None


class EncryptionAlgorithmUpdate(BaseModel):
    name: str | None = None
    algorithm_type: str | None = None
    key_size: int | None = None
    description: str | None = None
    standard: str | None = None
    metadata: dict[str, Any] | None = None


class EncryptionAlgorithmRead(BaseModel):
    id: uuid.UUID
    name: str
    algorithm_type: str
    key_size: int | None = None
    description: str | None = None
    standard: str | None = None
    metadata: dict[str, Any] | None = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = ORM_CONFIG


class CatalogueRelationCreate(BaseModel):
    source_type: str
    source_id: uuid.UUID
    target_type: str
    target_id: uuid.UUID
    relation_type: str
    description: str | None = None


class CatalogueRelationRead(CatalogueRelationCreate):
    id: uuid.UUID
    created_at: datetime

    model_config = ORM_CONFIG
