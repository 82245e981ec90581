"""
Province/locality reference data read from the bundled JSON file.

The file is read on every call; there is no cache.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from shared.constants import MAX_LOCALIDAD_SUGGESTIONS, MIN_LOCALIDAD_QUERY_LENGTH
from shared.string_utils import normalize_for_search

logger = logging.getLogger(__name__)

# Mendoza's capital is split into numbered "secciones" in the georef dataset.
MENDOZA_SECCIONES = {
    "sección primera",
    "sección segunda",
    "sección tercera",
    "sección cuarta",
    "sección quinta",
    "sección sexta",
    "sección séptima",
    "sección octava",
    "sección novena",
    "sección décima",
}
MENDOZA_CIUDAD = "Mendoza Ciudad"


class LocalidadesError(Exception):
    """The reference file is missing or malformed."""


def cargar_localidades(path: str | Path) -> list[dict]:
    """
    Loads the list of localities from `path`.

    Each entry looks like
    `{"id": "...", "nombre": "...", "provincia": {"id": "...", "nombre": "..."}}`.

    Raises:
        LocalidadesError: If the file can't be read or doesn't have the
            expected `{"localidades": [...]}` shape, or a record has no name or
            province id. Numeric ids are returned as strings.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise LocalidadesError(f"No se pudo leer {path}: {e}") from e

    localidades = data.get("localidades") if isinstance(data, dict) else None
    if not isinstance(localidades, list):
        raise LocalidadesError(f"{path} no tiene la propiedad 'localidades'.")
    return [_normalizar_registro(raw, path) for raw in localidades]


def _como_texto(value) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


def _normalizar_registro(raw, path: str | Path) -> dict:
    """Ids become strings; a record without name or province id is unusable."""
    provincia = raw.get("provincia") if isinstance(raw, dict) else None
    if not isinstance(provincia, dict):
        raise LocalidadesError(f"{path} tiene una localidad sin provincia: {raw!r}")
    nombre = raw.get("nombre")
    provincia_id = _como_texto(provincia.get("id"))
    if not isinstance(nombre, str) or provincia_id is None:
        raise LocalidadesError(f"{path} tiene una localidad inválida: {raw!r}")
    nombre_provincia = provincia.get("nombre")
    return {
        "id": _como_texto(raw.get("id")),
        "nombre": nombre,
        "provincia": {
            "id": provincia_id,
            "nombre": nombre_provincia if isinstance(nombre_provincia, str) else None,
        },
    }


def listar_provincias(localidades: Iterable[dict]) -> list[dict]:
    """Unique provinces keyed by id, in first-seen order."""
    provincias: dict[str, dict] = {}
    for localidad in localidades:
        provincia = localidad.get("provincia") or {}
        provincia_id = provincia.get("id")
        if provincia_id is None or provincia_id in provincias:
            continue
        provincias[provincia_id] = {
            "id": provincia_id,
            "nombre": provincia.get("nombre"),
        }
    return list(provincias.values())


def _nombre_provincia(localidad: dict) -> str:
    return (localidad.get("provincia") or {}).get("nombre") or ""


def filtrar_por_provincia(
    localidades: Iterable[dict], provincia: str | None
) -> list[dict]:
    """Localities whose province name equals `provincia`, ignoring case."""
    if not provincia:
        return list(localidades)
    buscada = provincia.lower()
    return [l for l in localidades if _nombre_provincia(l).lower() == buscada]


def buscar_localidades(
    localidades: Iterable[dict],
    query: str | None,
    limite: int = MAX_LOCALIDAD_SUGGESTIONS,
) -> list[dict]:
    """
    Autocomplete suggestions: localities whose name or province name contains
    `query`, ignoring case and accents. Short queries return nothing.
    """
    if not query or len(query) < MIN_LOCALIDAD_QUERY_LENGTH:
        return []
    buscada = normalize_for_search(query)
    sugerencias = []
    for localidad in localidades:
        if buscada in normalize_for_search(
            localidad.get("nombre")
        ) or buscada in normalize_for_search(_nombre_provincia(localidad)):
            sugerencias.append(localidad)
            if len(sugerencias) >= limite:
                break
    return sugerencias


def limpiar_localidad(raw: dict) -> dict:
    """
    Reduces a georef locality record to the fields the API serves.

    Mendoza's numbered capital sections collapse into "Mendoza Ciudad".
    """
    provincia = raw.get("provincia") or {}
    nombre = raw.get("nombre") or ""
    if (
        provincia.get("nombre") == "Mendoza"
        and nombre.lower() in MENDOZA_SECCIONES
    ):
        nombre = MENDOZA_CIUDAD
    return {
        "id": raw.get("id"),
        "nombre": nombre,
        "provincia": {"id": provincia.get("id"), "nombre": provincia.get("nombre")},
    }


def limpiar_localidades(raw: Iterable[dict]) -> list[dict]:
    """
    Cleans a raw export, dropping repeated (province, name) pairs that the
    Mendoza collapse produces.
    """
    vistas = set()
    limpias = []
    for item in raw:
        localidad = limpiar_localidad(item)
        clave = (localidad["provincia"]["id"], localidad["nombre"])
        if clave in vistas:
            continue
        vistas.add(clave)
        limpias.append(localidad)
    return limpias
