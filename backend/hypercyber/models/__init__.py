"""SQLAlchemy models exposed by the backend."""
from .base import Base, utc_now
from .catalogue import (
    CatalogueRelation,
    EncryptionAlgorithm,
    Endpoint,
    LicenseKey,
    SoftwareVersion,
)
from .entity import ADMIN_ROLE, Entity, Membership
from .rgpd import AccessRequest, Breach, RegisterEntry
from .user import User

__all__ = [
    "ADMIN_ROLE",
    "AccessRequest",
    "Base",
    "Breach",
    "CatalogueRelation",
    "EncryptionAlgorithm",
    "Endpoint",
    "Entity",
    "LicenseKey",
    "Membership",
    "RegisterEntry",
    "SoftwareVersion",
    "User",
    "utc_now",
]
