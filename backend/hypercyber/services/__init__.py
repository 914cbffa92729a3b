"""Store services behind the HTTP routers."""
from .catalogue import (
    EncryptionAlgorithmStore,
    EndpointStore,
    LicenseKeyStore,
    RelationStore,
    SoftwareVersionStore,
)
from .entities import EntityStore
from .rgpd import AccessRequestStore, BreachStore, RegisterStore

__all__ = [
    "AccessRequestStore",
    "BreachStore",
    "EncryptionAlgorithmStore",
    "EndpointStore",
    "EntityStore",
    "LicenseKeyStore",
    "RegisterStore",
    "RelationStore",
    "SoftwareVersionStore",
]
