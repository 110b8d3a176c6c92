"""Payload builders shared by the inventory tests."""

from typing import Any

import httpx
from respx import MockRouter, Route

from equipstic.type_defs import JsonDict
from tests.unit.conftest import TEST_BASE_URL

NOT_FOUND_MESSAGE = "L'infraestructura no existeix"


def success(data: Any) -> JsonDict:
    """Envelope of a successful reply."""
    return {"status": "success", "message": None, "data": data}


def fail(message: str | None, data: Any = None) -> JsonDict:
    """Envelope of a failed reply."""
    return {"status": "fail", "message": message, "data": data}


def reply(envelope: JsonDict) -> httpx.Response:
    """HTTP response carrying an envelope, labelled the way the server does."""
    return httpx.Response(200, json=envelope, headers={"content-type": "text/plain"})


def url(path: str) -> str:
    """Absolute URL of an API path."""
    return f"{TEST_BASE_URL}{path}"


def infrastructure_payload(identifier: int = 42, **overrides: Any) -> JsonDict:
    """Wire form of an equipment record with stub relations.

    The seven mandatory relations are set, plus the infrastructure user;
    destination unit and operating system are null.
    """
    payload: JsonDict = {
        "identificador": identifier,
        "numeroSerie": f"SN-{identifier}",
        "nom": f"Equip {identifier}",
        "descripcio": None,
        "dataAlta": "2021-03-15T10:30:00",
        "dataBaixa": None,
        "marca": {"idMarca": 1},
        "tipusInfraestructura": {"idTipus": 2},
        "estat": {"idEstat": 3},
        "unitat": {"idUnitat": 4},
        "edifici": {"idEdifici": 5},
        "estatValidacio": {"idEstat": 6},
        "unitatGestora": {"idUnitat": 7},
        "unitatDestinataria": None,
        "sistemaOperatiu": None,
        "usuariInfraestructura": {"idUsuariInfraestructura": 8},
    }
    payload.update(overrides)
    return payload


# Wire form of every entity referenced by infrastructure_payload(), keyed by path
RELATION_TARGETS: dict[str, JsonDict] = {
    "/marca/1": {"idMarca": 1, "nom": "Dell"},
    "/tipusInfraestructura/2": {"idTipus": 2, "codi": "PC", "nom": "Ordinador"},
    "/estat/3": {"idEstat": 3, "codi": "ACT", "nom": "Actiu"},
    "/unitat/4": {"idUnitat": 4, "codiUnitat": "250", "identificador": "ETSECCPB", "nom": "Escola"},
    "/edifici/5": {"idEdifici": 5, "codi": "C1", "nom": "Edifici C1", "codiCampus": "NORD"},
    "/estat/6": {"idEstat": 6, "codi": "VAL", "nom": "Validat"},
    "/unitat/7": {"idUnitat": 7, "codiUnitat": "700", "identificador": "UTGCN", "nom": "Gestora"},
    "/usuariInfraestructura/8": {"idUsuariInfraestructura": 8, "nom": "Maria"},
}


def mock_relations(respx_mock: MockRouter) -> dict[str, Route]:
    """Register a successful lookup for every relation target."""
    return {
        path: respx_mock.get(url(path)).mock(return_value=reply(success(entity)))
        for path, entity in RELATION_TARGETS.items()
    }
