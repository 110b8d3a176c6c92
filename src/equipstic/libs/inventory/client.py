"""REST client for the EquipsTIC inventory API."""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

import httpx
from pydantic import BaseModel, JsonValue, ValidationError

from equipstic.libs.inventory import endpoints as ep
from equipstic.libs.inventory.cache import CacheStore, LookupCache, create_ttl_cache
from equipstic.libs.inventory.config import ClientConfig
from equipstic.libs.inventory.endpoints import Endpoint, Shape
from equipstic.libs.inventory.envelope import (
    Absent,
    Envelope,
    interpret_list,
    interpret_mutation,
    interpret_single,
)
from equipstic.libs.inventory.exceptions import (
    AuthenticationError,
    InvalidArgumentError,
    RemoteOperationError,
    TransportError,
)
from equipstic.libs.inventory.hydration import hydrate
from equipstic.libs.inventory.models import (
    TIMEZONE_CONTEXT_KEY,
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
    Relation,
    Scope,
    Status,
    Unit,
    UsageType,
)
from equipstic.libs.inventory.ordering import sort_entities
from equipstic.type_defs import JsonDict
from equipstic.user_agent import get_user_agent

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")


def _require_text(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise InvalidArgumentError(f"Parameter '{name}' cannot be blank")
    return value


def _require_id(value: int | None, name: str) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"Parameter '{name}' must be an integer identifier")
    return value


async def _gather_all(aws: Iterable[Awaitable[R]]) -> list[R]:
    """Await all awaitables, then raise the first failure if any occurred."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]


class EquipsTicClient:
    """Client for the EquipsTIC inventory REST API.

    Every operation maps onto one entry of
    :mod:`~equipstic.libs.inventory.endpoints` and goes through a single
    dispatch routine. Single lookups return None when the server reports the
    resource as missing; list lookups never do and return an empty list
    instead.

    Reference data lookups are cached when a cache store is supplied or
    ``cache_ttl_seconds`` is configured. Writes do not invalidate the cache,
    so reads may return stale data until entries expire.

    Example:
        >>> config = ClientConfig(base_url="https://soa.example.edu/equipstic",
        ...                       username="user", password="secret")
        >>> async with EquipsTicClient(config) as client:
        ...     campuses = await client.get_campuses()
    """

    def __init__(self, config: ClientConfig, cache: CacheStore | None = None):
        """Initialize the client.

        Args:
            config: Configuration for the EquipsTIC API
            cache: Optional key/value store for lookup results. When omitted
                and ``config.cache_ttl_seconds`` is set, an in-memory TTL
                cache is created.
        """
        self.config = config
        self._client: httpx.AsyncClient | None = None
        if cache is None and config.cache_ttl_seconds is not None:
            cache = create_ttl_cache(config.cache_ttl_seconds, config.cache_maxsize)
        self._cache = LookupCache(cache) if cache is not None else None
        self._context = {TIMEZONE_CONTEXT_KEY: config.zone}
        self._lookup_slots = asyncio.Semaphore(config.max_concurrent_lookups)
        logger.debug(
            "Initialized EquipsTIC client",
            extra={
                "base_url": config.base_url,
                "timezone": config.timezone,
                "cache_enabled": self._cache is not None,
            },
        )

    async def __aenter__(self) -> "EquipsTicClient":
        """Enter async context manager."""
        logger.debug("Opening HTTP client connection")
        self._client = httpx.AsyncClient(
            auth=httpx.BasicAuth(self.config.username, self.config.password),
            headers={
                "Accept": "application/json",
                "User-Agent": get_user_agent(),
            },
            timeout=httpx.Timeout(self.config.timeout_seconds),
        )
        logger.debug("HTTP client connection established")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager."""
        logger.debug("Closing HTTP client connection")
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client connection closed")

    # ------------------------------------------------------------------
    # Transport and dispatch
    # ------------------------------------------------------------------

    async def _send(
        self, endpoint: Endpoint[M], path: str, body: JsonDict | None = None
    ) -> Envelope | None:
        """Issue the HTTP call and decode the envelope.

        Returns:
            The decoded envelope, or None if the reply had no body.

        Raises:
            TransportError: On network failures, timeouts, HTTP errors or a
                body that is not an envelope.
        """
        if not self._client:
            raise TransportError("Client not initialized. Use async context manager.")

        url = f"{self.config.base_url}{path}"
        logger.debug(
            "Sending request to EquipsTIC API",
            extra={"operation": endpoint.name, "method": endpoint.method, "url": url},
        )

        try:
            response = await self._client.request(endpoint.method, url, json=body)
        except httpx.TimeoutException as e:
            logger.exception(
                "Timeout calling EquipsTIC API",
                extra={"operation": endpoint.name, "url": url},
            )
            raise TransportError(f"Request timeout: {e}") from e
        except (httpx.NetworkError, httpx.RequestError) as e:
            logger.exception(
                "Network error calling EquipsTIC API",
                extra={"operation": endpoint.name, "url": url},
            )
            raise TransportError(f"Network error: {e}") from e

        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Envelope | None:
        """Turn an HTTP response into an envelope.

        The server labels its JSON replies as ``text/plain``, so the content
        type is ignored.
        """
        logger.debug(
            "Handling response",
            extra={
                "status_code": response.status_code,
                "content_type": response.headers.get("content-type"),
            },
        )

        if response.status_code in (401, 403):
            logger.error(
                "Authentication failed",
                extra={"status_code": response.status_code, "url": str(response.url)},
            )
            raise AuthenticationError(
                "Authentication failed", status_code=response.status_code
            )

        if response.status_code >= 400:
            logger.error(
                "HTTP error from EquipsTIC API",
                extra={"status_code": response.status_code, "url": str(response.url)},
            )
            raise TransportError(
                "Unexpected HTTP status",
                status_code=response.status_code,
                details=response.text[:200] or None,
            )

        if not response.content.strip():
            logger.warning("Empty response body", extra={"url": str(response.url)})
            return None

        try:
            return Envelope.model_validate_json(response.content)
        except ValidationError as e:
            logger.exception(
                "Failed to decode response envelope",
                extra={"url": str(response.url), "response": response.text[:500]},
            )
            raise TransportError(
                "Malformed response envelope", status_code=response.status_code, details=str(e)
            ) from e

    def _parse(self, endpoint: Endpoint[M], data: JsonValue, envelope: Envelope | None) -> M:
        try:
            return endpoint.model.model_validate(data, context=self._context)
        except ValidationError as e:
            logger.exception(
                "Failed to parse payload",
                extra={"operation": endpoint.name, "model": endpoint.model.__name__},
            )
            raise RemoteOperationError(
                f"Failed to parse {endpoint.model.__name__} payload",
                envelope=envelope,
                details=str(e),
            ) from e

    async def _fetch_one(self, endpoint: Endpoint[M], *args: object) -> M | None:
        """Run a single-entity lookup; None means the resource does not exist."""
        key = (endpoint.name, args)
        if endpoint.cacheable and self._cache is not None:
            hit, cached = self._cache.lookup(key)
            if hit:
                return cached  # type: ignore[return-value]

        envelope = await self._send(endpoint, endpoint.build_path(*args))
        result = interpret_single(envelope)
        if isinstance(result, Absent) or result.value is None:
            value = None
        else:
            value = self._parse(endpoint, result.value, envelope)

        if endpoint.cacheable and self._cache is not None:
            self._cache.store(key, value)
        return value

    async def _fetch_list(self, endpoint: Endpoint[M], *args: object) -> list[M]:
        """Run a list lookup, sorted if the entity type has a natural ordering."""
        key = (endpoint.name, args)
        if endpoint.cacheable and self._cache is not None:
            hit, cached = self._cache.lookup(key)
            if hit:
                return list(cached)  # type: ignore[call-overload]

        envelope = await self._send(endpoint, endpoint.build_path(*args))
        items = [self._parse(endpoint, item, envelope) for item in interpret_list(envelope)]
        if endpoint.ordered:
            items = sort_entities(items)  # type: ignore[type-var]

        logger.debug(
            "Fetched list", extra={"operation": endpoint.name, "item_count": len(items)}
        )
        if endpoint.cacheable and self._cache is not None:
            self._cache.store(key, tuple(items))
        return items

    async def _mutate(
        self, endpoint: Endpoint[M], *args: object, body: JsonDict | None = None
    ) -> M | None:
        """Run a create, update or delete call.

        Returns:
            The stored record, or None for void endpoints and empty replies.

        Raises:
            ValueError: If the endpoint is a lookup.
        """
        if endpoint.shape not in (Shape.MUTATION, Shape.VOID):
            raise ValueError(f"{endpoint.name} is not a write operation")
        envelope = await self._send(endpoint, endpoint.build_path(*args), body)
        data = interpret_mutation(envelope)
        if endpoint.shape is Shape.VOID or data is None:
            return None
        return self._parse(endpoint, data, envelope)

    async def _resolve(self, relation: Relation, reference_id: int) -> Entity | None:
        # Unit listings fan out to one lookup per relation of every record
        async with self._lookup_slots:
            found: Entity | None = await self._fetch_one(ep.BY_ID[relation.entity], reference_id)
        return found

    async def _hydrate(self, infrastructure: Infrastructure | None) -> Infrastructure | None:
        return await hydrate(infrastructure, self._resolve)

    async def _hydrate_all(self, items: list[Infrastructure]) -> list[Infrastructure]:
        hydrated = await _gather_all(self._hydrate(item) for item in items)
        return sort_entities(item for item in hydrated if item is not None)

    def _serialize(self, infrastructure: Infrastructure) -> JsonDict:
        body: JsonDict = infrastructure.model_dump(
            mode="json", by_alias=True, context=self._context
        )
        return body

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    async def get_scopes(self) -> list[Scope]:
        """Return all scopes."""
        return await self._fetch_list(ep.SCOPES)

    async def get_scopes_by_name(self, name: str) -> list[Scope]:
        """Search scopes by name."""
        return await self._fetch_list(ep.SCOPES_BY_NAME, _require_text(name, "name"))

    async def get_scope_by_id(self, scope_id: int) -> Scope | None:
        """Return the scope with the given id."""
        return await self._fetch_one(ep.SCOPE_BY_ID, _require_id(scope_id, "scope_id"))

    # ------------------------------------------------------------------
    # Campuses
    # ------------------------------------------------------------------

    async def get_campuses(self) -> list[Campus]:
        """Return all campuses, sorted by name."""
        return await self._fetch_list(ep.CAMPUSES)

    async def get_campus_by_code(self, code: str) -> Campus | None:
        """Return the campus with the given code."""
        return await self._fetch_one(ep.CAMPUS_BY_CODE, _require_text(code, "code"))

    async def get_campus_by_id(self, campus_id: int) -> Campus | None:
        """Return the campus with the given id."""
        return await self._fetch_one(ep.CAMPUS_BY_ID, _require_id(campus_id, "campus_id"))

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_categories(self) -> list[Category]:
        """Return all categories."""
        return await self._fetch_list(ep.CATEGORIES)

    async def get_category_by_id(self, category_id: int) -> Category | None:
        """Return the category with the given id."""
        return await self._fetch_one(
            ep.CATEGORY_BY_ID, _require_id(category_id, "category_id")
        )

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    async def get_buildings(self) -> list[Building]:
        """Return all buildings, sorted by campus code and building code."""
        return await self._fetch_list(ep.BUILDINGS)

    async def get_building_by_id(self, building_id: int) -> Building | None:
        """Return the building with the given id."""
        return await self._fetch_one(
            ep.BUILDING_BY_ID, _require_id(building_id, "building_id")
        )

    async def get_building_by_code_and_campus_code(
        self, code: str, campus_code: str
    ) -> Building | None:
        """Return a building from its code and the code of its campus."""
        return await self._fetch_one(
            ep.BUILDING_BY_CODE_AND_CAMPUS_CODE,
            _require_text(code, "code"),
            _require_text(campus_code, "campus_code"),
        )

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------

    async def get_statuses(self) -> list[Status]:
        """Return all statuses."""
        return await self._fetch_list(ep.STATUSES)

    async def get_status_by_code(self, code: str) -> Status | None:
        """Return the status with the given code."""
        return await self._fetch_one(ep.STATUS_BY_CODE, _require_text(code, "code"))

    async def get_statuses_by_name(self, name: str) -> list[Status]:
        """Search statuses by name."""
        return await self._fetch_list(ep.STATUSES_BY_NAME, _require_text(name, "name"))

    async def get_status_by_id(self, status_id: int) -> Status | None:
        """Return the status with the given id."""
        return await self._fetch_one(ep.STATUS_BY_ID, _require_id(status_id, "status_id"))

    # ------------------------------------------------------------------
    # Brands (server order, no natural ordering)
    # ------------------------------------------------------------------

    async def get_brands(self) -> list[Brand]:
        """Return all brands in the order sent by the server."""
        return await self._fetch_list(ep.BRANDS)

    async def get_brands_by_name(self, name: str) -> list[Brand]:
        """Search brands by name, in the order sent by the server."""
        return await self._fetch_list(ep.BRANDS_BY_NAME, _require_text(name, "name"))

    async def get_brand_by_id(self, brand_id: int) -> Brand | None:
        """Return the brand with the given id."""
        return await self._fetch_one(ep.BRAND_BY_ID, _require_id(brand_id, "brand_id"))

    # ------------------------------------------------------------------
    # Usage types
    # ------------------------------------------------------------------

    async def get_usage_types(self) -> list[UsageType]:
        """Return all usage types."""
        return await self._fetch_list(ep.USAGE_TYPES)

    async def get_usage_types_by_unit(self, unit_id: int) -> list[UsageType]:
        """Return the usage types available to a unit."""
        return await self._fetch_list(ep.USAGE_TYPES_BY_UNIT, _require_id(unit_id, "unit_id"))

    async def get_usage_type_by_id(self, usage_type_id: int) -> UsageType | None:
        """Return the usage type with the given id."""
        return await self._fetch_one(
            ep.USAGE_TYPE_BY_ID, _require_id(usage_type_id, "usage_type_id")
        )

    # ------------------------------------------------------------------
    # Infrastructure types
    # ------------------------------------------------------------------

    async def get_infrastructure_types(self) -> list[InfrastructureType]:
        """Return all infrastructure types."""
        return await self._fetch_list(ep.INFRASTRUCTURE_TYPES)

    async def get_infrastructure_types_by_category(
        self, category_id: int
    ) -> list[InfrastructureType]:
        """Return the infrastructure types of a category."""
        return await self._fetch_list(
            ep.INFRASTRUCTURE_TYPES_BY_CATEGORY, _require_id(category_id, "category_id")
        )

    async def get_infrastructure_type_by_code(self, code: str) -> InfrastructureType | None:
        """Return the infrastructure type with the given code."""
        return await self._fetch_one(
            ep.INFRASTRUCTURE_TYPE_BY_CODE, _require_text(code, "code")
        )

    async def get_infrastructure_types_by_name(self, name: str) -> list[InfrastructureType]:
        """Search infrastructure types by name."""
        return await self._fetch_list(
            ep.INFRASTRUCTURE_TYPES_BY_NAME, _require_text(name, "name")
        )

    async def get_infrastructure_type_by_id(self, type_id: int) -> InfrastructureType | None:
        """Return the infrastructure type with the given id."""
        return await self._fetch_one(
            ep.INFRASTRUCTURE_TYPE_BY_ID, _require_id(type_id, "type_id")
        )

    # ------------------------------------------------------------------
    # Network types (server order, no natural ordering)
    # ------------------------------------------------------------------

    async def get_network_types(self) -> list[NetworkType]:
        """Return all network types in the order sent by the server."""
        return await self._fetch_list(ep.NETWORK_TYPES)

    async def get_network_type_by_id(self, network_type_id: int) -> NetworkType | None:
        """Return the network type with the given id."""
        return await self._fetch_one(
            ep.NETWORK_TYPE_BY_ID, _require_id(network_type_id, "network_type_id")
        )

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    async def get_units(self) -> list[Unit]:
        """Return all units."""
        return await self._fetch_list(ep.UNITS)

    async def get_unit_by_identifier(self, identifier: str) -> Unit | None:
        """Return a unit by its acronym (e.g. "ETSECCPB").

        Not to be confused with :meth:`get_unit_by_id`, which takes the
        internal numeric id.
        """
        return await self._fetch_one(
            ep.UNIT_BY_IDENTIFIER, _require_text(identifier, "identifier")
        )

    async def get_units_by_name(self, name: str) -> list[Unit]:
        """Search units by name."""
        return await self._fetch_list(ep.UNITS_BY_NAME, _require_text(name, "name"))

    async def get_units_by_name_identifier_and_code(
        self, name: str, identifier: str, code: str
    ) -> list[Unit]:
        """Search units by name, acronym and unit code."""
        return await self._fetch_list(
            ep.UNITS_BY_NAME_IDENTIFIER_AND_CODE,
            _require_text(name, "name"),
            _require_text(identifier, "identifier"),
            _require_text(code, "code"),
        )

    async def get_unit_by_id(self, unit_id: int) -> Unit | None:
        """Return the unit with the given internal id."""
        return await self._fetch_one(ep.UNIT_BY_ID, _require_id(unit_id, "unit_id"))

    # ------------------------------------------------------------------
    # Infrastructure users
    # ------------------------------------------------------------------

    async def get_infrastructure_users(self) -> list[InfrastructureUser]:
        """Return all infrastructure users."""
        return await self._fetch_list(ep.INFRASTRUCTURE_USERS)

    async def get_infrastructure_users_by_name(self, name: str) -> list[InfrastructureUser]:
        """Search infrastructure users by name."""
        return await self._fetch_list(
            ep.INFRASTRUCTURE_USERS_BY_NAME, _require_text(name, "name")
        )

    async def get_infrastructure_user_by_id(self, user_id: int) -> InfrastructureUser | None:
        """Return the infrastructure user with the given id."""
        return await self._fetch_one(
            ep.INFRASTRUCTURE_USER_BY_ID, _require_id(user_id, "user_id")
        )

    # ------------------------------------------------------------------
    # Operating systems
    # ------------------------------------------------------------------

    async def get_operating_systems(self) -> list[OperatingSystem]:
        """Return all operating systems."""
        return await self._fetch_list(ep.OPERATING_SYSTEMS)

    async def get_operating_systems_by_category(self, category_id: int) -> list[OperatingSystem]:
        """Return the operating systems of a category."""
        return await self._fetch_list(
            ep.OPERATING_SYSTEMS_BY_CATEGORY, _require_id(category_id, "category_id")
        )

    async def get_operating_systems_by_code(self, code: str) -> list[OperatingSystem]:
        """Search operating systems by code."""
        return await self._fetch_list(ep.OPERATING_SYSTEMS_BY_CODE, _require_text(code, "code"))

    async def get_operating_systems_by_name(self, name: str) -> list[OperatingSystem]:
        """Search operating systems by name."""
        return await self._fetch_list(ep.OPERATING_SYSTEMS_BY_NAME, _require_text(name, "name"))

    async def get_operating_system_by_id(self, operating_system_id: int) -> OperatingSystem | None:
        """Return the operating system with the given id."""
        return await self._fetch_one(
            ep.OPERATING_SYSTEM_BY_ID, _require_id(operating_system_id, "operating_system_id")
        )

    # ------------------------------------------------------------------
    # Equipment records
    # ------------------------------------------------------------------

    async def get_infrastructure_by_id(self, infrastructure_id: int) -> Infrastructure | None:
        """Return the fully hydrated equipment record with the given id.

        Raises:
            StubResolutionError: If one of its relations could not be resolved.
        """
        raw = await self._fetch_one(
            ep.INFRASTRUCTURE_BY_ID, _require_id(infrastructure_id, "infrastructure_id")
        )
        return await self._hydrate(raw)

    async def get_infrastructure_by_brand_and_serial_number(
        self, brand_id: int, serial_number: str
    ) -> Infrastructure | None:
        """Return the fully hydrated equipment record with a brand and serial number."""
        raw = await self._fetch_one(
            ep.INFRASTRUCTURE_BY_BRAND_AND_SERIAL_NUMBER,
            _require_id(brand_id, "brand_id"),
            _require_text(serial_number, "serial_number"),
        )
        return await self._hydrate(raw)

    async def get_infrastructures_by_unit(self, unit_id: int) -> list[Infrastructure]:
        """Return the hydrated equipment records of a unit, sorted by identifier."""
        raw = await self._fetch_list(ep.INFRASTRUCTURES_BY_UNIT, _require_id(unit_id, "unit_id"))
        return await self._hydrate_all(raw)

    async def create_infrastructure(self, infrastructure: Infrastructure) -> Infrastructure | None:
        """Create an equipment record.

        Returns:
            The record as stored by the server. Its relations are not hydrated.

        Raises:
            RemoteOperationError: If the server rejected the record.
        """
        if infrastructure is None:
            raise InvalidArgumentError("Parameter 'infrastructure' cannot be None")
        logger.info("Creating infrastructure", extra={"serial_number": infrastructure.serial_number})
        return await self._mutate(
            ep.CREATE_INFRASTRUCTURE, body=self._serialize(infrastructure)
        )

    async def update_infrastructure(self, infrastructure: Infrastructure) -> Infrastructure | None:
        """Update an existing equipment record.

        Returns:
            The record as stored by the server. Its relations are not hydrated.

        Raises:
            InvalidArgumentError: If the record has no identifier.
            RemoteOperationError: If the server rejected the update.
        """
        if infrastructure is None:
            raise InvalidArgumentError("Parameter 'infrastructure' cannot be None")
        identifier = _require_id(infrastructure.identifier, "infrastructure.identifier")
        logger.info("Updating infrastructure", extra={"identifier": identifier})
        return await self._mutate(
            ep.UPDATE_INFRASTRUCTURE, identifier, body=self._serialize(infrastructure)
        )

    async def delete_infrastructure(self, infrastructure_id: int) -> None:
        """Delete an equipment record.

        Raises:
            RemoteOperationError: If the server refused the deletion, including
                when the record does not exist.
        """
        identifier = _require_id(infrastructure_id, "infrastructure_id")
        logger.info("Deleting infrastructure", extra={"identifier": identifier})
        await self._mutate(ep.DELETE_INFRASTRUCTURE, identifier)

    # ------------------------------------------------------------------
    # Generic access by resource name
    # ------------------------------------------------------------------

    async def list_resource(self, resource: str) -> list[Entity]:
        """List a reference resource by its name in ``endpoints.LIST_ENDPOINTS``."""
        endpoint = ep.LIST_ENDPOINTS.get(resource)
        if endpoint is None:
            raise InvalidArgumentError(f"Unknown resource '{resource}'")
        items: list[Entity] = await self._fetch_list(endpoint)
        return items

    async def get_resource(self, resource: str, entity_id: int) -> Entity | None:
        """Fetch a reference entity by resource name and id."""
        endpoint = ep.GET_ENDPOINTS.get(resource)
        if endpoint is None:
            raise InvalidArgumentError(f"Unknown resource '{resource}'")
        found: Entity | None = await self._fetch_one(
            endpoint, _require_id(entity_id, "entity_id")
        )
        return found
