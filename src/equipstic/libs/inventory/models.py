"""Pydantic models for EquipsTIC entities.

Reference entities (campus, building, brand...) are read-only snapshots.
:class:`Infrastructure` is the composite equipment record: the API returns
its relations as stubs carrying only an identifier, which the client then
resolves into full entities (see :mod:`equipstic.libs.inventory.hydration`).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Final
from zoneinfo import ZoneInfo

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FieldSerializationInfo,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)

DEFAULT_SERVER_TIMEZONE: Final[str] = "Europe/Madrid"

# Key under which callers pass the server time zone in the pydantic context
TIMEZONE_CONTEXT_KEY: Final[str] = "timezone"


def _server_zone(context: object) -> ZoneInfo:
    if isinstance(context, dict):
        zone = context.get(TIMEZONE_CONTEXT_KEY)
        if isinstance(zone, ZoneInfo):
            return zone
        if isinstance(zone, str):
            return ZoneInfo(zone)
    return ZoneInfo(DEFAULT_SERVER_TIMEZONE)


class Entity(BaseModel):
    """Base class for reference entities.

    Subclasses name the attribute holding their numeric identifier in
    ``ID_FIELD`` and the attributes defining their natural ordering in
    ``SORT_FIELDS``. An empty ``SORT_FIELDS`` means the type has no natural
    ordering and lists keep the order sent by the server.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    ID_FIELD: ClassVar[str]
    SORT_FIELDS: ClassVar[tuple[str, ...]] = ("name",)

    @property
    def entity_id(self) -> int | None:
        """Numeric identifier of the entity."""
        value: int | None = getattr(self, self.ID_FIELD)
        return value

    @classmethod
    def is_ordered(cls) -> bool:
        """Whether the type defines a natural ordering."""
        return bool(cls.SORT_FIELDS)

    def sort_key(self) -> tuple[tuple[bool, Any], ...]:
        """Null-safe sort key; ties are broken by identifier."""
        fields = (*self.SORT_FIELDS, self.ID_FIELD)
        values = (getattr(self, name) for name in fields)
        return tuple((value is None, value if value is not None else "") for value in values)


class Scope(Entity):
    """An ambit: the functional scope of a unit."""

    ID_FIELD: ClassVar[str] = "scope_id"

    scope_id: int | None = Field(None, alias="idAmbit")
    name: str | None = Field(None, alias="nom")


class Campus(Entity):
    """A university campus."""

    ID_FIELD: ClassVar[str] = "campus_id"

    campus_id: int | None = Field(None, alias="idCampus")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class Category(Entity):
    """Category grouping infrastructure types and operating systems."""

    ID_FIELD: ClassVar[str] = "category_id"

    category_id: int | None = Field(None, alias="idCategoria")
    name: str | None = Field(None, alias="nom")


class Building(Entity):
    """A building, identified by its code within a campus."""

    ID_FIELD: ClassVar[str] = "building_id"
    SORT_FIELDS: ClassVar[tuple[str, ...]] = ("campus_code", "code")

    building_id: int | None = Field(None, alias="idEdifici")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")
    campus_code: str | None = Field(None, alias="codiCampus")


class Status(Entity):
    """Lifecycle or validation status of an equipment record."""

    ID_FIELD: ClassVar[str] = "status_id"

    status_id: int | None = Field(None, alias="idEstat")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class Brand(Entity):
    """Manufacturer brand. Has no natural ordering."""

    ID_FIELD: ClassVar[str] = "brand_id"
    SORT_FIELDS: ClassVar[tuple[str, ...]] = ()

    brand_id: int | None = Field(None, alias="idMarca")
    name: str | None = Field(None, alias="nom")


class UsageType(Entity):
    """Usage type (tipus d'us) available to a unit."""

    ID_FIELD: ClassVar[str] = "usage_type_id"

    usage_type_id: int | None = Field(None, alias="idTipusUs")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class InfrastructureType(Entity):
    """Kind of equipment (laptop, switch, printer...)."""

    ID_FIELD: ClassVar[str] = "type_id"

    type_id: int | None = Field(None, alias="idTipus")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class NetworkType(Entity):
    """Network type. Has no natural ordering."""

    ID_FIELD: ClassVar[str] = "network_type_id"
    SORT_FIELDS: ClassVar[tuple[str, ...]] = ()

    network_type_id: int | None = Field(None, alias="idTipusXarxa")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class Unit(Entity):
    """An organisational unit.

    ``unit_id`` is the internal EquipsTIC id; ``identifier`` holds the unit
    acronym (e.g. ``"ETSECCPB"``) and ``unit_code`` the university code.
    """

    ID_FIELD: ClassVar[str] = "unit_id"

    unit_id: int | None = Field(None, alias="idUnitat")
    unit_code: str | None = Field(None, alias="codiUnitat")
    identifier: str | None = Field(None, alias="identificador")
    name: str | None = Field(None, alias="nom")


class InfrastructureUser(Entity):
    """Person registered as user of an equipment record."""

    ID_FIELD: ClassVar[str] = "user_id"

    user_id: int | None = Field(None, alias="idUsuariInfraestructura")
    name: str | None = Field(None, alias="nom")


class OperatingSystem(Entity):
    """Operating system installed on an equipment record."""

    ID_FIELD: ClassVar[str] = "operating_system_id"

    operating_system_id: int | None = Field(None, alias="idSistemaOperatiu")
    code: str | None = Field(None, alias="codi")
    name: str | None = Field(None, alias="nom")


class Stub(BaseModel):
    """A relation the API sent with only its identifier populated."""

    model_config = ConfigDict(frozen=True)

    id: int


@dataclass(frozen=True)
class Relation:
    """A stub-bearing relation field of :class:`Infrastructure`."""

    field: str
    alias: str
    id_key: str
    entity: type[Entity]
    mandatory: bool = True


RELATIONS: Final[tuple[Relation, ...]] = (
    Relation("brand", "marca", "idMarca", Brand),
    Relation("infrastructure_type", "tipusInfraestructura", "idTipus", InfrastructureType),
    Relation("status", "estat", "idEstat", Status),
    Relation("unit", "unitat", "idUnitat", Unit),
    Relation("building", "edifici", "idEdifici", Building),
    Relation("validation_status", "estatValidacio", "idEstat", Status),
    Relation("managing_unit", "unitatGestora", "idUnitat", Unit),
    Relation("destination_unit", "unitatDestinataria", "idUnitat", Unit, mandatory=False),
    Relation(
        "operating_system",
        "sistemaOperatiu",
        "idSistemaOperatiu",
        OperatingSystem,
        mandatory=False,
    ),
    Relation(
        "user",
        "usuariInfraestructura",
        "idUsuariInfraestructura",
        InfrastructureUser,
        mandatory=False,
    ),
)

RELATIONS_BY_FIELD: Final[dict[str, Relation]] = {r.field: r for r in RELATIONS}


class Infrastructure(BaseModel):
    """An equipment record.

    Relation fields hold either a :class:`Stub` (as received from the API) or
    the resolved entity. Dates without an explicit offset are interpreted in
    the server time zone passed through the validation context.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    identifier: int | None = Field(None, alias="identificador")
    serial_number: str | None = Field(None, alias="numeroSerie")
    name: str | None = Field(None, alias="nom")
    description: str | None = Field(None, alias="descripcio")
    registered_at: datetime | None = Field(None, alias="dataAlta")
    removed_at: datetime | None = Field(None, alias="dataBaixa")

    brand: Stub | Brand = Field(..., alias="marca")
    infrastructure_type: Stub | InfrastructureType = Field(..., alias="tipusInfraestructura")
    status: Stub | Status = Field(..., alias="estat")
    unit: Stub | Unit = Field(..., alias="unitat")
    building: Stub | Building = Field(..., alias="edifici")
    validation_status: Stub | Status = Field(..., alias="estatValidacio")
    managing_unit: Stub | Unit = Field(..., alias="unitatGestora")
    destination_unit: Stub | Unit | None = Field(None, alias="unitatDestinataria")
    operating_system: Stub | OperatingSystem | None = Field(None, alias="sistemaOperatiu")
    user: Stub | InfrastructureUser | None = Field(None, alias="usuariInfraestructura")

    @model_validator(mode="before")
    @classmethod
    def _relations_from_wire(cls, data: Any) -> Any:
        """Turn id-only relation objects into stubs.

        The API only populates the identifier of nested objects. A mapping
        holding nothing else (or only nulls) becomes a :class:`Stub`; one
        with further values, such as a dumped hydrated record, is left for
        pydantic to validate as the resolved entity. Model instances are kept
        as they are.
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for relation in RELATIONS:
            id_keys = (relation.id_key, relation.entity.ID_FIELD)
            for key in (relation.alias, relation.field):
                value = data.get(key)
                if not isinstance(value, dict):
                    continue
                stub_id = next((value[k] for k in id_keys if value.get(k) is not None), None)
                if stub_id is None:
                    if relation.mandatory:
                        raise ValueError(
                            f"relation '{relation.alias}' has no '{relation.id_key}'"
                        )
                    data[key] = None
                elif all(v is None for k, v in value.items() if k not in id_keys):
                    data[key] = Stub(id=stub_id)
                else:
                    data[key] = relation.entity.model_validate(value)
        return data

    @field_validator("registered_at", "removed_at", mode="before")
    @classmethod
    def _from_epoch_millis(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            utc = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            return utc.astimezone(_server_zone(info.context))
        return value

    @field_validator("registered_at", "removed_at")
    @classmethod
    def _localize(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=_server_zone(info.context))
        return value

    @field_serializer("registered_at", "removed_at", when_used="json")
    def _serialize_date(self, value: datetime | None, info: FieldSerializationInfo) -> str | None:
        if value is None:
            return None
        return value.astimezone(_server_zone(info.context)).isoformat()

    @field_serializer(*RELATIONS_BY_FIELD)
    def _serialize_relation(self, value: Stub | Entity | None, info: FieldSerializationInfo) -> Any:
        if value is None:
            return None
        if isinstance(value, Stub):
            relation = RELATIONS_BY_FIELD[info.field_name]
            return {relation.id_key: value.id}
        return value.model_dump(by_alias=bool(info.by_alias), mode=info.mode)

    @property
    def is_hydrated(self) -> bool:
        """True when no relation field still holds a stub."""
        return not any(isinstance(getattr(self, r.field), Stub) for r in RELATIONS)

    @classmethod
    def is_ordered(cls) -> bool:
        """Equipment records are ordered by identifier."""
        return True

    def sort_key(self) -> tuple[bool, int]:
        """Null-safe sort key on the identifier."""
        return (self.identifier is None, self.identifier or 0)
