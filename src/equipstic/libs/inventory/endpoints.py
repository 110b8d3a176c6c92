"""Declarative table of EquipsTIC API endpoints.

Each :class:`Endpoint` describes one remote operation: its path template,
HTTP method, the shape of its reply and the model it deserializes into.
:class:`~equipstic.libs.inventory.client.EquipsTicClient` drives all calls
through a single dispatch routine reading these entries.
"""

from dataclasses import dataclass
from enum import Enum
from string import Formatter
from typing import Any, Final, Generic, TypeVar
from urllib.parse import quote

from pydantic import BaseModel

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
    Unit,
    UsageType,
)

M = TypeVar("M", bound=BaseModel)


class Shape(str, Enum):
    """How the reply payload is interpreted."""

    SINGLE = "single"
    LIST = "list"
    MUTATION = "mutation"
    # success or failure only; the payload is dropped
    VOID = "void"


@dataclass(frozen=True)
class Endpoint(Generic[M]):
    """One remote operation."""

    name: str
    path: str
    model: type[M]
    shape: Shape
    method: str = "GET"
    cacheable: bool = True
    ordered: bool = False

    @property
    def parameters(self) -> tuple[str, ...]:
        """Names of the placeholders in the path template, in order."""
        return tuple(
            field for _, field, _, _ in Formatter().parse(self.path) if field is not None
        )

    def build_path(self, *args: object) -> str:
        """Substitute positional arguments into the path template.

        Values are percent-encoded so that names with spaces or slashes stay
        within their path segment.

        Raises:
            ValueError: If the number of arguments does not match the template.
        """
        names = self.parameters
        if len(args) != len(names):
            raise ValueError(
                f"{self.name} expects {len(names)} path parameters, got {len(args)}"
            )
        encoded = {name: quote(str(value), safe="") for name, value in zip(names, args)}
        return self.path.format(**encoded)


def _get_one(name: str, path: str, model: type[M], cacheable: bool = True) -> Endpoint[M]:
    return Endpoint(name, path, model, Shape.SINGLE, cacheable=cacheable)


def _get_list(name: str, path: str, model: type[M], cacheable: bool = True) -> Endpoint[M]:
    ordered = issubclass(model, Infrastructure) or (
        issubclass(model, Entity) and model.is_ordered()
    )
    return Endpoint(name, path, model, Shape.LIST, cacheable=cacheable, ordered=ordered)


# Scopes
SCOPES = _get_list("get_scopes", "/ambit", Scope)
SCOPES_BY_NAME = _get_list("get_scopes_by_name", "/ambit/cerca/nom/{nom}", Scope)
SCOPE_BY_ID = _get_one("get_scope_by_id", "/ambit/{id}", Scope)

# Campuses
CAMPUSES = _get_list("get_campuses", "/campus", Campus)
CAMPUS_BY_CODE = _get_one("get_campus_by_code", "/campus/cerca/codi/{codi}", Campus)
CAMPUS_BY_ID = _get_one("get_campus_by_id", "/campus/{id}", Campus)

# Categories
CATEGORIES = _get_list("get_categories", "/categoria", Category)
CATEGORY_BY_ID = _get_one("get_category_by_id", "/categoria/{id}", Category)

# Buildings
BUILDINGS = _get_list("get_buildings", "/edifici", Building)
BUILDING_BY_ID = _get_one("get_building_by_id", "/edifici/{id}", Building)
BUILDING_BY_CODE_AND_CAMPUS_CODE = _get_one(
    "get_building_by_code_and_campus_code",
    "/edifici/cerca/codi/{codi}/codicampus/{codiCampus}",
    Building,
)

# Statuses
STATUSES = _get_list("get_statuses", "/estat", Status)
STATUS_BY_CODE = _get_one("get_status_by_code", "/estat/cerca/codi/{codi}", Status)
STATUSES_BY_NAME = _get_list("get_statuses_by_name", "/estat/cerca/nom/{nom}", Status)
STATUS_BY_ID = _get_one("get_status_by_id", "/estat/{id}", Status)

# Brands
BRANDS = _get_list("get_brands", "/marca", Brand)
BRANDS_BY_NAME = _get_list("get_brands_by_name", "/marca/cerca/nom/{nom}", Brand)
BRAND_BY_ID = _get_one("get_brand_by_id", "/marca/{id}", Brand)

# Usage types
USAGE_TYPES = _get_list("get_usage_types", "/tipusUs", UsageType)
USAGE_TYPES_BY_UNIT = _get_list(
    "get_usage_types_by_unit", "/tipusUs/cerca/unitat/{idUnitat}", UsageType
)
USAGE_TYPE_BY_ID = _get_one("get_usage_type_by_id", "/tipusUs/{idTipusUs}", UsageType)

# Infrastructure types
INFRASTRUCTURE_TYPES = _get_list(
    "get_infrastructure_types", "/tipusInfraestructura", InfrastructureType
)
INFRASTRUCTURE_TYPES_BY_CATEGORY = _get_list(
    "get_infrastructure_types_by_category",
    "/tipusInfraestructura/cerca/categoria/{idCategoria}",
    InfrastructureType,
)
INFRASTRUCTURE_TYPE_BY_CODE = _get_one(
    "get_infrastructure_type_by_code",
    "/tipusInfraestructura/cerca/codi/{codi}",
    InfrastructureType,
)
INFRASTRUCTURE_TYPES_BY_NAME = _get_list(
    "get_infrastructure_types_by_name",
    "/tipusInfraestructura/cerca/nom/{nom}",
    InfrastructureType,
)
INFRASTRUCTURE_TYPE_BY_ID = _get_one(
    "get_infrastructure_type_by_id", "/tipusInfraestructura/{id}", InfrastructureType
)

# Network types
NETWORK_TYPES = _get_list("get_network_types", "/tipusXarxa", NetworkType)
NETWORK_TYPE_BY_ID = _get_one("get_network_type_by_id", "/tipusXarxa/{id}", NetworkType)

# Units
UNITS = _get_list("get_units", "/unitat", Unit)
UNIT_BY_IDENTIFIER = _get_one(
    "get_unit_by_identifier", "/unitat/cerca/identificador/{identificador}", Unit
)
UNITS_BY_NAME = _get_list("get_units_by_name", "/unitat/cerca/nom/{nom}", Unit)
UNITS_BY_NAME_IDENTIFIER_AND_CODE = _get_list(
    "get_units_by_name_identifier_and_code",
    "/unitat/cerca/nom/{nom}/identificador/{identificador}/codi/{codi}",
    Unit,
)
UNIT_BY_ID = _get_one("get_unit_by_id", "/unitat/{id}", Unit)

# Infrastructure users
INFRASTRUCTURE_USERS = _get_list(
    "get_infrastructure_users", "/usuariInfraestructura", InfrastructureUser
)
INFRASTRUCTURE_USERS_BY_NAME = _get_list(
    "get_infrastructure_users_by_name",
    "/usuariInfraestructura/cerca/nom/{nom}",
    InfrastructureUser,
)
INFRASTRUCTURE_USER_BY_ID = _get_one(
    "get_infrastructure_user_by_id",
    "/usuariInfraestructura/{idUsuariInfraestructura}",
    InfrastructureUser,
)

# Operating systems
OPERATING_SYSTEMS = _get_list("get_operating_systems", "/sistemaOperatiu", OperatingSystem)
OPERATING_SYSTEMS_BY_CATEGORY = _get_list(
    "get_operating_systems_by_category",
    "/sistemaOperatiu/cerca/categoria/{idCategoria}",
    OperatingSystem,
)
OPERATING_SYSTEMS_BY_CODE = _get_list(
    "get_operating_systems_by_code", "/sistemaOperatiu/cerca/codi/{codi}", OperatingSystem
)
OPERATING_SYSTEMS_BY_NAME = _get_list(
    "get_operating_systems_by_name", "/sistemaOperatiu/cerca/nom/{nom}", OperatingSystem
)
OPERATING_SYSTEM_BY_ID = _get_one(
    "get_operating_system_by_id", "/sistemaOperatiu/{id}", OperatingSystem
)

# Equipment records: never cached, replies are hydrated by the client
INFRASTRUCTURE_BY_ID = _get_one(
    "get_infrastructure_by_id", "/infraestructura/{id}", Infrastructure, cacheable=False
)
INFRASTRUCTURE_BY_BRAND_AND_SERIAL_NUMBER = _get_one(
    "get_infrastructure_by_brand_and_serial_number",
    "/infraestructura/cerca/marca/{idMarca}/sn/{sn}",
    Infrastructure,
    cacheable=False,
)
INFRASTRUCTURES_BY_UNIT = _get_list(
    "get_infrastructures_by_unit",
    "/infraestructura/cerca/unitat/{idUnitat}",
    Infrastructure,
    cacheable=False,
)
CREATE_INFRASTRUCTURE = Endpoint(
    "create_infrastructure",
    "/infraestructura",
    Infrastructure,
    Shape.MUTATION,
    method="POST",
    cacheable=False,
)
UPDATE_INFRASTRUCTURE = Endpoint(
    "update_infrastructure",
    "/infraestructura/{id}",
    Infrastructure,
    Shape.MUTATION,
    method="PUT",
    cacheable=False,
)
DELETE_INFRASTRUCTURE = Endpoint(
    "delete_infrastructure",
    "/infraestructura/{id}",
    Infrastructure,
    Shape.VOID,
    method="DELETE",
    cacheable=False,
)

# Lookup by identifier for each entity type, used to resolve stubs
BY_ID: Final[dict[type[Entity], Endpoint[Any]]] = {
    Scope: SCOPE_BY_ID,
    Campus: CAMPUS_BY_ID,
    Category: CATEGORY_BY_ID,
    Building: BUILDING_BY_ID,
    Status: STATUS_BY_ID,
    Brand: BRAND_BY_ID,
    UsageType: USAGE_TYPE_BY_ID,
    InfrastructureType: INFRASTRUCTURE_TYPE_BY_ID,
    NetworkType: NETWORK_TYPE_BY_ID,
    Unit: UNIT_BY_ID,
    InfrastructureUser: INFRASTRUCTURE_USER_BY_ID,
    OperatingSystem: OPERATING_SYSTEM_BY_ID,
}

# Resources reachable from the command line, by name
LIST_ENDPOINTS: Final[dict[str, Endpoint[Any]]] = {
    "scopes": SCOPES,
    "campuses": CAMPUSES,
    "categories": CATEGORIES,
    "buildings": BUILDINGS,
    "statuses": STATUSES,
    "brands": BRANDS,
    "usage-types": USAGE_TYPES,
    "infrastructure-types": INFRASTRUCTURE_TYPES,
    "network-types": NETWORK_TYPES,
    "units": UNITS,
    "infrastructure-users": INFRASTRUCTURE_USERS,
    "operating-systems": OPERATING_SYSTEMS,
}

GET_ENDPOINTS: Final[dict[str, Endpoint[Any]]] = {
    "scope": SCOPE_BY_ID,
    "campus": CAMPUS_BY_ID,
    "category": CATEGORY_BY_ID,
    "building": BUILDING_BY_ID,
    "status": STATUS_BY_ID,
    "brand": BRAND_BY_ID,
    "usage-type": USAGE_TYPE_BY_ID,
    "infrastructure-type": INFRASTRUCTURE_TYPE_BY_ID,
    "network-type": NETWORK_TYPE_BY_ID,
    "unit": UNIT_BY_ID,
    "infrastructure-user": INFRASTRUCTURE_USER_BY_ID,
    "operating-system": OPERATING_SYSTEM_BY_ID,
}
