"""
Pydantic schemas for the marketplace API.

Field names are camelCase because that's what the web client sends and what
is stored in Firestore.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

CondicionImpositiva = Literal[
    "RESPONSABLE_INSCRIPTO",
    "MONOTRIBUTO",
    "EXENTO",
    "CONSUMIDOR_FINAL",
    "NO_CATEGORIZADO",
]
RolUsuario = Literal["usuario", "prestador", "comercio"]


# --- PIN ---------------------------------------------------------------------


class UpdatePinRequest(BaseModel):
    uid: Optional[str] = None
    rol: Optional[str] = None
    newPin: Optional[str] = None


class UpdatePinResponse(BaseModel):
    success: bool
    message: str


class VerifyPinRequest(BaseModel):
    pin: Optional[str] = None
    hashedPin: Optional[str] = None


class VerifyPinResponse(BaseModel):
    isMatch: bool


# --- Registration ------------------------------------------------------------


class RegistroFormData(BaseModel):
    email: Optional[str] = None
    contrasena: Optional[str] = None
    pin: Optional[str] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    telefono: Optional[str] = None
    localidad: Optional[dict] = None
    seleccionCategoria: Optional[dict] = None
    seleccionRubro: Optional[dict] = None
    matricula: Optional[str] = None
    cuilCuit: Optional[str] = None
    descripcion: Optional[str] = None


class RegisterRequest(BaseModel):
    formData: Optional[RegistroFormData] = None
    rol: Optional[str] = None
    selfieData: Optional[str] = None


class RegisterResponse(BaseModel):
    success: bool
    message: str
    uid: str


# --- Locations ---------------------------------------------------------------


class ProvinciaRef(BaseModel):
    id: str
    nombre: Optional[str] = None


class Localidad(BaseModel):
    id: Optional[str] = None
    nombre: str
    provincia: ProvinciaRef


class ProvinciasResponse(BaseModel):
    provincias: list[ProvinciaRef]


class LocalidadesResponse(BaseModel):
    localidades: list[Localidad]


class SugerenciasResponse(BaseModel):
    sugerencias: list[Localidad]


# --- Fiscal profile ----------------------------------------------------------


class ProveedorFiscal(BaseModel):
    tusFacturasClienteId: Optional[str] = None


class PerfilFiscal(BaseModel):
    """Invoicing profile. Never stores the CUIT/CUIL itself."""

    viaVerificacion: Literal["cuit_padron", "cuil_nombre"]
    receptorParaFactura: Literal["CUIT", "CONSUMIDOR_FINAL"]
    razonSocial: Optional[str] = None
    condicionImpositiva: Optional[CondicionImpositiva] = None
    domicilio: Optional[str] = None
    localidad: Optional[str] = None
    provincia: Optional[str] = None
    codigopostal: Optional[str] = None
    emailReceptor: str
    verifiedAt: str
    proveedor: Optional[ProveedorFiscal] = None
    cuitGuardado: Literal["none"]


class InformacionFiscalRequest(BaseModel):
    uid: str
    perfil: PerfilFiscal
    rol: Optional[RolUsuario] = None

    @field_validator("uid")
    @classmethod
    def uid_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("uid must not be blank")
        return value


class PerfilFiscalResponse(BaseModel):
    uid: str
    perfil: dict


class VerificarCuitRequest(BaseModel):
    cuit: Optional[str] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None


# --- Campaigns, plans, checkout ----------------------------------------------


class CrearPreferenciaRequest(BaseModel):
    planId: Optional[str] = None
    campaignId: Optional[str] = None
    creatorId: Optional[str] = None
    payerEmail: Optional[str] = None


class CrearPreferenciaResponse(BaseModel):
    id: str
    external_reference: str


# --- Providers ---------------------------------------------------------------


class ProvidersResponse(BaseModel):
    prestadores: list[dict]


# --- Storage -----------------------------------------------------------------


class SignUrlResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human readable error message")
