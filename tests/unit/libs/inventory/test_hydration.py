"""Unit tests for relation hydration."""

import asyncio

import pytest

from equipstic.libs.inventory.exceptions import (
    RemoteOperationError,
    StubResolutionError,
    TransportError,
)
from equipstic.libs.inventory.hydration import hydrate
from equipstic.libs.inventory.models import (
    Brand,
    Building,
    Entity,
    Infrastructure,
    InfrastructureType,
    InfrastructureUser,
    Relation,
    Status,
    Stub,
    Unit,
)
from tests.unit.libs.inventory.helpers import infrastructure_payload

ENTITIES: dict[tuple[type[Entity], int], Entity] = {
    (Brand, 1): Brand(brand_id=1, name="Dell"),
    (InfrastructureType, 2): InfrastructureType(type_id=2, code="PC", name="Ordinador"),
    (Status, 3): Status(status_id=3, code="ACT", name="Actiu"),
    (Unit, 4): Unit(unit_id=4, identifier="ETSECCPB", name="Escola"),
    (Building, 5): Building(building_id=5, code="C1", campus_code="NORD"),
    (Status, 6): Status(status_id=6, code="VAL", name="Validat"),
    (Unit, 7): Unit(unit_id=7, identifier="UTGCN", name="Gestora"),
    (InfrastructureUser, 8): InfrastructureUser(user_id=8, name="Maria"),
}


class RecordingResolver:
    """Resolver returning canned entities and recording every call."""

    def __init__(self, entities: dict[tuple[type[Entity], int], Entity | None]) -> None:
        self.entities = entities
        self.calls: list[tuple[str, int]] = []

    async def __call__(self, relation: Relation, reference_id: int) -> Entity | None:
        self.calls.append((relation.field, reference_id))
        await asyncio.sleep(0)
        return self.entities.get((relation.entity, reference_id))


def _record(**overrides: object) -> Infrastructure:
    return Infrastructure.model_validate(infrastructure_payload(**overrides))


class TestHydrate:
    """Test hydrate."""

    @pytest.mark.asyncio
    async def test_none_is_returned_without_lookups(self) -> None:
        """Hydrating nothing costs nothing."""
        resolver = RecordingResolver(ENTITIES)

        assert await hydrate(None, resolver) is None
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_all_relations_resolved(self) -> None:
        """Every stub is replaced by the entity with the same id."""
        resolver = RecordingResolver(ENTITIES)

        result = await hydrate(_record(), resolver)

        assert result is not None
        assert result.is_hydrated
        assert result.brand == Brand(brand_id=1, name="Dell")
        assert result.validation_status == Status(status_id=6, code="VAL", name="Validat")
        assert result.managing_unit == Unit(unit_id=7, identifier="UTGCN", name="Gestora")
        assert result.user == InfrastructureUser(user_id=8, name="Maria")
        assert result.serial_number == "SN-42"

    @pytest.mark.asyncio
    async def test_null_optional_relations_cost_no_lookup(self) -> None:
        """Seven mandatory relations plus the user: eight lookups."""
        resolver = RecordingResolver(ENTITIES)

        result = await hydrate(_record(), resolver)

        assert result is not None
        assert len(resolver.calls) == 8
        assert result.destination_unit is None
        assert result.operating_system is None

    @pytest.mark.asyncio
    async def test_only_mandatory_relations(self) -> None:
        """With every optional relation null, only the seven mandatory ones are fetched."""
        resolver = RecordingResolver(ENTITIES)

        await hydrate(_record(usuariInfraestructura=None), resolver)

        assert len(resolver.calls) == 7
        assert "user" not in {field for field, _ in resolver.calls}

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self) -> None:
        """Hydration returns a new record and leaves the input untouched."""
        record = _record()

        result = await hydrate(record, RecordingResolver(ENTITIES))

        assert result is not record
        assert record.brand == Stub(id=1)
        assert not record.is_hydrated

    @pytest.mark.asyncio
    async def test_idempotent(self) -> None:
        """Hydrating a hydrated record gives an equal record."""
        resolver = RecordingResolver(ENTITIES)

        once = await hydrate(_record(), resolver)
        twice = await hydrate(once, resolver)

        assert twice == once

    @pytest.mark.asyncio
    async def test_missing_target_raises_stub_resolution_error(self) -> None:
        """A relation pointing at a vanished entity is an error."""
        entities: dict[tuple[type[Entity], int], Entity | None] = dict(ENTITIES)
        del entities[(Building, 5)]

        with pytest.raises(StubResolutionError) as exc_info:
            await hydrate(_record(), RecordingResolver(entities))

        assert exc_info.value.relation == "building"
        assert exc_info.value.entity_id == 5
        assert isinstance(exc_info.value, RemoteOperationError)

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self) -> None:
        """A failing lookup aborts the whole hydration."""

        async def resolver(relation: Relation, reference_id: int) -> Entity | None:
            if relation.field == "status":
                raise TransportError("Network error: boom")
            return ENTITIES[(relation.entity, reference_id)]

        record = _record()
        with pytest.raises(TransportError, match="boom"):
            await hydrate(record, resolver)

        assert not record.is_hydrated

    @pytest.mark.asyncio
    async def test_other_lookups_finish_before_error_is_raised(self) -> None:
        """No lookup is left running when hydration fails."""
        finished: list[str] = []

        async def resolver(relation: Relation, reference_id: int) -> Entity | None:
            if relation.field == "brand":
                raise RemoteOperationError("Error fetching resource: boom")
            await asyncio.sleep(0.01)
            finished.append(relation.field)
            return ENTITIES[(relation.entity, reference_id)]

        with pytest.raises(RemoteOperationError):
            await hydrate(_record(), resolver)

        assert len(finished) == 7

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(self) -> None:
        """All lookups are in flight at the same time."""
        in_flight = 0
        peak = 0

        async def resolver(relation: Relation, reference_id: int) -> Entity | None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return ENTITIES[(relation.entity, reference_id)]

        await hydrate(_record(), resolver)

        assert peak == 8
