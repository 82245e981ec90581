"""
User registration: PIN hashing, account creation, selfie upload and the
profile document.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from backend.auth import AuthClient
from backend.db import DbClient
from backend.pin import hash_pin
from backend.storage import StorageClient
from shared.constants import SELFIE_STORAGE_PATH
from shared.types import Rol

logger = logging.getLogger(__name__)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.S)


class InvalidSelfieError(ValueError):
    """The selfie is not a base64 `data:` URL."""


@dataclass
class RegistroResult:
    uid: str
    collection: str


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """
    Decodes a base64 `data:` URL as produced by a browser canvas.

    Returns:
        The raw bytes and the declared content type (defaults to image/jpeg).
    """
    match = _DATA_URL.match(data_url or "")
    if not match or not match.group("b64"):
        raise InvalidSelfieError("La selfie debe ser un data URL en base64.")
    try:
        raw = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSelfieError("La selfie no es base64 válido.") from e
    return raw, match.group("mime") or "image/jpeg"


def build_user_document(
    uid: str,
    form_data: dict,
    rol: str,
    selfie_path: str,
    hashed_pin: str,
) -> dict:
    """Profile document saved in the role's collection."""
    document = {
        "uid": uid,
        "email": form_data["email"],
        "nombre": form_data.get("nombre") or None,
        "apellido": form_data.get("apellido") or None,
        "rol": rol,
        "telefono": form_data.get("telefono") or None,
        "localidad": form_data.get("localidad") or None,
        "selfiePath": selfie_path,
        "hashedPin": hashed_pin,
        "fechaRegistro": datetime.now(timezone.utc).isoformat(),
        "activo": True,
    }
    if rol in (Rol.PRESTADOR.value, Rol.COMERCIO.value):
        if rol == Rol.PRESTADOR.value:
            document["categoria"] = form_data.get("seleccionCategoria") or None
        else:
            document["rubro"] = form_data.get("seleccionRubro") or None
        document["matricula"] = form_data.get("matricula") or None
        document["cuilCuit"] = form_data.get("cuilCuit") or None
        document["descripcion"] = form_data.get("descripcion") or None
    return document


def registrar_usuario(
    form_data: dict,
    rol: str,
    selfie_data: str,
    *,
    db: DbClient,
    auth_client: AuthClient,
    storage: StorageClient,
    pin_rounds: int,
) -> RegistroResult:
    """
    Creates the account and its profile.

    The selfie is decoded before the account is created, and the account is
    deleted again if the upload or the profile write fails.
    """
    selfie_bytes, content_type = decode_data_url(selfie_data)
    hashed_pin = hash_pin(form_data["pin"], rounds=pin_rounds)

    uid = auth_client.create_user(form_data["email"], form_data["contrasena"])

    selfie_path = SELFIE_STORAGE_PATH.format(uid=uid)
    try:
        storage.upload_bytes(selfie_path, selfie_bytes, content_type)
        document = build_user_document(uid, form_data, rol, selfie_path, hashed_pin)
        collection = db.save_user(uid, rol, document)
    except Exception:
        logger.error(f"Registration of {uid} failed, deleting the account")
        auth_client.delete_user(uid)
        raise
    logger.info(f"Registered user {uid} in {collection}")
    return RegistroResult(uid=uid, collection=collection)
