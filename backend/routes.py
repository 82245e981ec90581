"""
HTTP routes for the marketplace API.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

import requests
from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError

from backend import localidades as localidades_data
from backend.auth import AuthClient, EmailAlreadyInUseError, InvalidCredentialsError
from backend.campanas import cotizar, find_campana, find_plan
from backend.config import Settings, get_settings
from backend.db import DbClient, DocumentNotFoundError, ProviderFilter
from backend.dependencies import (
    get_auth_client,
    get_db_client,
    get_localidades_path,
    get_mercado_pago_client,
    get_storage_client,
    get_tusfacturas_client,
)
from backend.mercado_pago import (
    MercadoPagoClient,
    MercadoPagoError,
    build_preference_payload,
)
from backend.pin import hash_pin, verify_pin
from backend.registro import InvalidSelfieError, registrar_usuario
from backend.schemas import (
    CrearPreferenciaRequest,
    CrearPreferenciaResponse,
    ErrorResponse,
    InformacionFiscalRequest,
    LocalidadesResponse,
    PerfilFiscalResponse,
    ProvidersResponse,
    ProvinciasResponse,
    RegisterRequest,
    RegisterResponse,
    SignUrlResponse,
    SugerenciasResponse,
    UpdatePinRequest,
    UpdatePinResponse,
    VerificarCuitRequest,
    VerifyPinRequest,
    VerifyPinResponse,
)
from backend.storage import SELFIE_CONTENT_TYPE, StorageClient
from backend.tusfacturas import (
    TusFacturasApiError,
    TusFacturasClient,
    map_afip_info,
    nombre_coincide,
    parse_nombre_desde_error,
)
from shared.constants import (
    CAMPANAS,
    MIN_CUIT_DIGITS,
    MIN_LOCALIDAD_QUERY_LENGTH,
    PLANES,
)
from shared.json_utils import convert_keys

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _fiscal_error(status_code: int, message: str) -> HTTPException:
    # The fiscal endpoints answer {"error": true, "message": ...}.
    return HTTPException(
        status_code=status_code, detail={"error": True, "message": message}
    )


def _load_localidades(path: str) -> list[dict]:
    try:
        return localidades_data.cargar_localidades(path)
    except localidades_data.LocalidadesError as e:
        logger.error(f"Error al leer localidades: {e}")
        raise HTTPException(status_code=500, detail="Error interno del servidor")


# --- PIN ---------------------------------------------------------------------


@router.post(
    "/auth/update-pin", response_model=UpdatePinResponse, responses=ERROR_RESPONSES
)
def update_pin(
    payload: UpdatePinRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """
    Hashes a new PIN with a fresh salt and stores it on the user's document.
    """
    if not payload.uid or not payload.rol or not payload.newPin:
        raise HTTPException(
            status_code=400, detail="Faltan datos para actualizar el PIN."
        )

    try:
        hashed_pin = hash_pin(payload.newPin, rounds=settings.pin_hash_rounds)
        collection = db.update_user_pin(payload.uid, payload.rol, hashed_pin)
    except DocumentNotFoundError as e:
        logger.error(f"Error en /auth/update-pin: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("Error en /auth/update-pin")
        raise HTTPException(
            status_code=500,
            detail=str(e) or "Error inesperado en el servidor.",
        )

    logger.info(f"PIN actualizado para {payload.uid} en {collection}")
    return UpdatePinResponse(success=True, message="PIN actualizado correctamente.")


@router.post(
    "/auth/verify-pin", response_model=VerifyPinResponse, responses=ERROR_RESPONSES
)
def verify_pin_route(payload: VerifyPinRequest):
    if not payload.pin or not payload.hashedPin:
        raise HTTPException(
            status_code=400, detail="Faltan datos para la verificación."
        )
    try:
        is_match = verify_pin(payload.pin, payload.hashedPin)
    except Exception as e:
        # bcrypt raises ValueError for a malformed stored hash.
        logger.error(f"Error en /auth/verify-pin: {e}")
        raise HTTPException(
            status_code=500,
            detail="Ocurrió un error en el servidor al verificar el PIN.",
        )
    return VerifyPinResponse(isMatch=is_match)


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterRequest,
    db: DbClient = Depends(get_db_client),
    auth_client: AuthClient = Depends(get_auth_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    form = payload.formData
    if (
        not form
        or not payload.rol
        or not payload.selfieData
        or not form.email
        or not form.contrasena
        or not form.pin
    ):
        raise HTTPException(
            status_code=400, detail="Faltan datos esenciales para el registro."
        )

    try:
        result = registrar_usuario(
            form.model_dump(),
            payload.rol,
            payload.selfieData,
            db=db,
            auth_client=auth_client,
            storage=storage,
            pin_rounds=settings.pin_hash_rounds,
        )
    except InvalidSelfieError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmailAlreadyInUseError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error en /auth/register")
        raise HTTPException(
            status_code=500, detail="Ocurrió un error inesperado en el servidor."
        )

    return RegisterResponse(
        success=True, message="Usuario registrado exitosamente", uid=result.uid
    )


# --- Locations ---------------------------------------------------------------


@router.get("/provincias", response_model=ProvinciasResponse)
def provincias(path: str = Depends(get_localidades_path)):
    localidades = _load_localidades(path)
    return ProvinciasResponse(
        provincias=localidades_data.listar_provincias(localidades)
    )


@router.get("/localidades", response_model=LocalidadesResponse)
def localidades(
    provincia: Optional[str] = Query(None),
    path: str = Depends(get_localidades_path),
):
    todas = _load_localidades(path)
    return LocalidadesResponse(
        localidades=localidades_data.filtrar_por_provincia(todas, provincia)
    )


@router.get("/buscar-localidades", response_model=SugerenciasResponse)
def buscar_localidades(
    query: Optional[str] = Query(None),
    path: str = Depends(get_localidades_path),
):
    # Short queries skip the file read entirely.
    sugerencias = []
    if query and len(query) >= MIN_LOCALIDAD_QUERY_LENGTH:
        sugerencias = localidades_data.buscar_localidades(
            _load_localidades(path), query
        )
    return SugerenciasResponse(sugerencias=sugerencias)


# --- Fiscal profile ----------------------------------------------------------


@router.post("/informacion-fiscal")
def guardar_informacion_fiscal(
    body: Any = Body(None),
    db: DbClient = Depends(get_db_client),
):
    try:
        payload = InformacionFiscalRequest.model_validate(body)
    except ValidationError:
        raise _fiscal_error(
            400,
            "Payload inválido: se requiere { uid, perfil } con estructura correcta.",
        )

    perfil = payload.perfil.model_dump(exclude_none=True)
    try:
        db.save_perfil_fiscal(payload.uid, payload.rol, perfil)
    except Exception as e:
        logger.exception(f"No se pudo guardar la información fiscal de {payload.uid}")
        raise _fiscal_error(
            500, str(e) or "No se pudo guardar la información fiscal."
        )
    logger.info(f"Información fiscal guardada para {payload.uid}")
    return {"ok": True}


@router.get("/informacion-fiscal/{uid}", response_model=PerfilFiscalResponse)
def obtener_informacion_fiscal(uid: str, db: DbClient = Depends(get_db_client)):
    perfil = db.get_perfil_fiscal(uid)
    if perfil is None:
        raise _fiscal_error(404, "No hay información fiscal para este usuario.")
    return PerfilFiscalResponse(uid=uid, perfil=perfil)


@router.post("/verificar-cuit")
def verificar_cuit(
    body: Any = Body(None),
    client: Optional[TusFacturasClient] = Depends(get_tusfacturas_client),
):
    try:
        payload = VerificarCuitRequest.model_validate(body)
    except ValidationError:
        payload = VerificarCuitRequest()
    if not all(
        value and value.strip()
        for value in (payload.cuit, payload.nombre, payload.apellido)
    ):
        raise _fiscal_error(
            400, "Faltan datos requeridos (cuit, nombre, apellido)."
        )

    cuit = "".join(ch for ch in payload.cuit if ch.isdigit())
    if len(cuit) < MIN_CUIT_DIGITS:
        raise _fiscal_error(422, "CUIL/CUIT inválido.")

    if client is None:
        raise _fiscal_error(500, "Faltan credenciales de TusFacturas en el servidor.")

    try:
        resp = client.consultar_cuit(cuit)
    except TusFacturasApiError as e:
        detail = {"error": True, "message": str(e)}
        nombre_afip = parse_nombre_desde_error(e.raw)
        if nombre_afip:
            detail["nombreAfip"] = nombre_afip
        raise HTTPException(status_code=502, detail=detail)
    except requests.RequestException as e:
        logger.error(f"TusFacturas no disponible: {e}")
        raise _fiscal_error(
            500, "El servicio de verificación no está disponible en este momento."
        )

    if not nombre_coincide(payload.nombre, payload.apellido, resp.get("razon_social") or ""):
        raise _fiscal_error(
            401, "El nombre y apellido no coinciden con los registros oficiales."
        )

    return {"error": False, "data": map_afip_info(resp, cuit)}


# --- Campaigns, plans, checkout ----------------------------------------------


@router.get("/campanas")
def listar_campanas():
    return {"campanas": [convert_keys(asdict(c), "snake_to_camel") for c in CAMPANAS]}


def _plan_json(plan) -> dict:
    data = convert_keys(asdict(plan), "snake_to_camel")
    # Clients read the monthly price as priceARS.
    data["priceARS"] = data.pop("priceArs")
    return data


@router.get("/planes")
def listar_planes():
    return {"planes": [_plan_json(p) for p in PLANES]}


@router.get("/campanas/cotizacion")
def cotizacion(
    plan_id: Optional[str] = Query(None, alias="planId"),
    campaign_id: Optional[str] = Query(None, alias="campaignId"),
):
    plan = find_plan(plan_id)
    campana = find_campana(campaign_id)
    if not plan or not campana:
        raise HTTPException(status_code=400, detail="Plan o campaña inválidos.")
    return convert_keys(asdict(cotizar(plan, campana)), "snake_to_camel")


@router.post("/mercado-pago/crear-preferencia", response_model=CrearPreferenciaResponse)
def crear_preferencia(
    payload: CrearPreferenciaRequest,
    client: Optional[MercadoPagoClient] = Depends(get_mercado_pago_client),
    settings: Settings = Depends(get_settings),
):
    if not settings.app_url or not settings.mp_notification_url or client is None:
        raise HTTPException(
            status_code=500, detail="Faltan variables de entorno requeridas."
        )
    if not payload.planId or not payload.campaignId or not payload.creatorId:
        raise HTTPException(
            status_code=400,
            detail="Body inválido: faltan planId, campaignId o creatorId.",
        )

    plan = find_plan(payload.planId)
    campana = find_campana(payload.campaignId)
    if not plan or not campana:
        raise HTTPException(status_code=400, detail="Plan o campaña inválidos.")

    preference = build_preference_payload(
        plan,
        campana,
        payload.creatorId,
        app_url=settings.app_url,
        notification_url=settings.mp_notification_url,
        payer_email=payload.payerEmail,
    )
    try:
        preference_id = client.crear_preferencia(preference)
    except (MercadoPagoError, requests.RequestException) as e:
        logger.error(f"Error creando preferencia para {payload.creatorId}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return CrearPreferenciaResponse(
        id=preference_id, external_reference=preference["external_reference"]
    )


# --- Providers ---------------------------------------------------------------


@router.get("/prestadores", response_model=ProvidersResponse)
def listar_prestadores(
    categoria: Optional[str] = Query(None),
    provincia: Optional[str] = Query(None),
    localidad: Optional[str] = Query(None),
    subcategoria: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    if not categoria or not provincia or not localidad:
        raise HTTPException(
            status_code=400,
            detail="Se requieren categoria, provincia y localidad.",
        )
    filtro = ProviderFilter(
        categoria=categoria,
        provincia=provincia,
        localidad=localidad,
        subcategoria=subcategoria,
    )
    try:
        prestadores = db.list_providers(filtro)
    except Exception as e:
        logger.exception("Error consultando prestadores")
        raise HTTPException(status_code=500, detail=str(e) or "Error interno del servidor")
    return ProvidersResponse(prestadores=prestadores)


# --- Storage -----------------------------------------------------------------


@router.get("/sign-url", response_model=SignUrlResponse)
def sign_url(
    path: str = Query(..., description="Object path in storage"),
    op: str = Query("get", pattern="^(get|put)$"),
    expires_in: int = Query(3600, ge=60, le=86400),
    content_type: str = Query(SELFIE_CONTENT_TYPE, alias="contentType"),
    storage: StorageClient = Depends(get_storage_client),
):
    if op == "get":
        url = storage.presign_get(path, expires_in=expires_in)
    else:
        url = storage.presign_put(
            path, expires_in=expires_in, content_type=content_type
        )
    return SignUrlResponse(url=url)
