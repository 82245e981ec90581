"""
Client for the TusFacturas AFIP padrón lookup, plus helpers to interpret its
responses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from shared.string_utils import tokenize_name

logger = logging.getLogger(__name__)

AFIP_INFO_ENDPOINT = "https://www.tusfacturas.app/app/api/v2/clientes/afip-info"
REQUEST_TIMEOUT = 30  # seconds

CONDICIONES_IMPOSITIVAS = {
    "RESPONSABLE INSCRIPTO": "RESPONSABLE_INSCRIPTO",
    "MONOTRIBUTO": "MONOTRIBUTO",
    "EXENTO": "EXENTO",
    "CONSUMIDOR FINAL": "CONSUMIDOR_FINAL",
}

CONDICION_IVA = {
    "RESPONSABLE_INSCRIPTO": "RI",
    "MONOTRIBUTO": "MT",
    "EXENTO": "EX",
    "CONSUMIDOR_FINAL": "CF",
}

_UPPER = "A-ZÁÉÍÓÚÜÑ"
# "... error:  PEREZ GARCIA MARIA - La clave ..." -> name right after the last colon.
_NAME_AFTER_COLON = re.compile(rf"^([{_UPPER}][{_UPPER}\s'’.·\-]+?)(?:\s*[-–—]\s*|$)")
_NAME_BEFORE_DASH = re.compile(rf"([{_UPPER}]{{2,}}(?:\s+[{_UPPER}'’.·\-]{{2,}})+)\s*[-–—]")
_NAME_NOISE = re.compile(rf"[^{_UPPER}\s'’.\-·]")
_NAME_EDGES = re.compile(r"^[\s'’.·\-]+|[\s'’.·\-]+$")


class TusFacturasApiError(Exception):
    """The provider answered with `error: "S"`. Keeps the raw payload."""

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw


def flatten_errores(errores: Any) -> list[str]:
    """Flattens the provider's nested `errores` arrays into plain strings."""
    if isinstance(errores, str):
        return [errores]
    if isinstance(errores, list):
        flat: list[str] = []
        for item in errores:
            flat.extend(flatten_errores(item))
        return flat
    return []


@dataclass
class TusFacturasClient:
    api_key: str
    api_token: str
    user_token: str
    endpoint: str = AFIP_INFO_ENDPOINT

    def consultar_cuit(self, cuit: str) -> dict:
        """
        Looks up a CUIT in the AFIP padrón.

        Args:
            cuit (str): Digits only.

        Returns:
            dict: The successful (`error: "N"`) response payload.

        Raises:
            TusFacturasApiError: If the provider reports an error, which is
                what happens for CUILs not registered as taxpayers.
            requests.RequestException: On transport or HTTP errors.
        """
        body = {
            "apikey": self.api_key,
            "apitoken": self.api_token,
            "usertoken": self.user_token,
            "cliente": {"documento_tipo": "CUIT", "documento_nro": cuit},
        }
        response = requests.post(self.endpoint, json=body, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        payload = response.json()

        if payload.get("error") == "S":
            mensajes = flatten_errores(payload.get("errores"))
            message = ", ".join(mensajes) or "No se pudo verificar el CUIT/CUIL."
            raise TusFacturasApiError(message, raw=payload)
        return payload


def map_condicion_impositiva(condicion: Optional[str]) -> str:
    return CONDICIONES_IMPOSITIVAS.get((condicion or "").upper(), "NO_CATEGORIZADO")


def condicion_iva_para(condicion_impositiva: str) -> str:
    """IVA code used by the invoicing API for a tax condition."""
    return CONDICION_IVA.get(condicion_impositiva, "NR")


def map_afip_info(resp: dict, cuit: str) -> dict:
    """Maps a successful padrón response into our fiscal information shape."""
    ahora = datetime.now(timezone.utc).isoformat()
    condicion = map_condicion_impositiva(resp.get("condicion_impositiva"))
    info = {
        "razonSocial": resp.get("razon_social") or "",
        "condicionImpositiva": condicion,
        "condicionIVA": condicion_iva_para(condicion),
        "estado": resp.get("estado") or "INACTIVO",
        "domicilio": resp.get("domicilio"),
        "localidad": resp.get("localidad"),
        "provincia": resp.get("provincia"),
        "codigopostal": resp.get("codigopostal"),
        "actividades": resp.get("actividad"),
        "cuit": cuit,
        "fechaVerificacion": ahora,
        "verifiedAt": ahora,
        "preferenciasEnvio": {"email": True},
        "source": "ARCA",
    }
    return {k: v for k, v in info.items() if v is not None}


def nombre_coincide(nombre: str, apellido: str, razon_social: str) -> bool:
    """
    True when every token of the user's name appears inside some token of the
    registered business name (accents and case ignored).
    """
    tokens_usuario = tokenize_name(nombre) + tokenize_name(apellido)
    tokens_padron = tokenize_name(razon_social)
    if not tokens_usuario:
        return False
    return all(
        any(t_user in t_padron for t_padron in tokens_padron)
        for t_user in tokens_usuario
    )


def _error_text(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        joined = " ".join(flatten_errores(payload.get("errores"))).strip()
        if joined:
            return joined
        if isinstance(payload.get("message"), str):
            return payload["message"]
    return None


def _name_block(text: str) -> Optional[str]:
    normalized = re.sub(r"\s+", " ", text).strip()
    idx_colon = normalized.rfind(":")
    if idx_colon != -1:
        match = _NAME_AFTER_COLON.match(normalized[idx_colon + 1 :].strip())
        if match:
            return match.group(1).strip()
    match = _NAME_BEFORE_DASH.search(normalized)
    if match:
        return match.group(1).strip()
    return None


def parse_nombre_desde_error(payload: Any) -> Optional[dict]:
    """
    Extracts the registered name that the provider embeds in its error text
    for CUILs, e.g. "... error: PEREZ GARCIA MARIA VICTORIA - La clave ...".

    Token heuristic: 2-3 tokens are [APELLIDO] [NOMBRES...]; 4 or more are
    [APELLIDO] [APELLIDO2] [NOMBRES...].
    """
    text = _error_text(payload)
    if not text:
        return None
    block = _name_block(text)
    if not block:
        return None

    cleaned = _NAME_NOISE.sub(" ", block)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = _NAME_EDGES.sub("", cleaned).upper()
    tokens = cleaned.split()
    if not tokens:
        return None

    parsed = {"nombreCompleto": cleaned, "apellido": tokens[0], "tokens": tokens}
    if len(tokens) >= 4:
        parsed["apellido2"] = tokens[1]
        parsed["nombres"] = " ".join(tokens[2:])
    else:
        parsed["nombres"] = " ".join(tokens[1:])
    return parsed
