"""Inventory library for the EquipsTIC equipment registry."""

from equipstic.libs.inventory.cache import CacheStore, LookupCache, create_ttl_cache
from equipstic.libs.inventory.client import EquipsTicClient
from equipstic.libs.inventory.config import ClientConfig
from equipstic.libs.inventory.envelope import (
    ABSENT,
    Absent,
    Envelope,
    Present,
    interpret_list,
    interpret_mutation,
    interpret_single,
    is_not_found,
)
from equipstic.libs.inventory.exceptions import (
    AuthenticationError,
    ConfigError,
    EquipsTicError,
    InvalidArgumentError,
    RemoteOperationError,
    StubResolutionError,
    TransportError,
)
from equipstic.libs.inventory.hydration import hydrate
from equipstic.libs.inventory.models import (
    Brand,
    Building,
    Campus,
    Category,
    Entity,
    Infrastructure,
    InfrastructureType,
    InfrastructureUser,
    NetworkType,
    OperatingSystem,
    Scope,
    Status,
    Stub,
    Unit,
    UsageType,
)
from equipstic.libs.inventory.ordering import sort_entities

__all__ = [
    "ABSENT",
    "Absent",
    "AuthenticationError",
    "Brand",
    "Building",
    "CacheStore",
    "Campus",
    "Category",
    "ClientConfig",
    "ConfigError",
    "Entity",
    "Envelope",
    "EquipsTicClient",
    "EquipsTicError",
    "Infrastructure",
    "InfrastructureType",
    "InfrastructureUser",
    "InvalidArgumentError",
    "LookupCache",
    "NetworkType",
    "OperatingSystem",
    "Present",
    "RemoteOperationError",
    "Scope",
    "Status",
    "Stub",
    "StubResolutionError",
    "TransportError",
    "Unit",
    "UsageType",
    "create_ttl_cache",
    "hydrate",
    "interpret_list",
    "interpret_mutation",
    "interpret_single",
    "is_not_found",
    "sort_entities",
]
