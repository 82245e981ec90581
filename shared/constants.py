# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from shared.types import Campana, Plan, Rol

# Firestore collections
USUARIOS_GENERALES_COLLECTION = "usuarios_generales"
PRESTADORES_COLLECTION = "prestadores"
COMERCIOS_COLLECTION = "comercios"
USERS_COLLECTION = "users"
INFORMACION_FISCAL_COLLECTION = "informacionFiscal"
INFORMACION_FISCAL_DOC = "current"

ROLE_COLLECTIONS = {
    Rol.USUARIO.value: USUARIOS_GENERALES_COLLECTION,
    Rol.PRESTADOR.value: PRESTADORES_COLLECTION,
    Rol.COMERCIO.value: COMERCIOS_COLLECTION,
}

PIN_HASH_ROUNDS = 10

MIN_LOCALIDAD_QUERY_LENGTH = 2
MAX_LOCALIDAD_SUGGESTIONS = 10

MIN_CUIT_DIGITS = 8

SELFIE_STORAGE_PATH = "selfies/{uid}/profile.jpg"

CAMPANAS: list[Campana] = [
    Campana(id="mensual", name="Mensual", months=1, discount=0.0),
    Campana(id="trimestral", name="Trimestral", months=3, discount=0.1),
    Campana(id="semestral", name="Semestral", months=6, discount=0.2),
    Campana(id="anual", name="Anual", months=12, discount=0.3),
]

PLANES: list[Plan] = [
    Plan(
        id="bronce",
        name="Plan Bronce",
        price_ars=5000,
        duration_front_ms=1500,
        duration_back_ms=2500,
        display_mode="random",
        description="Rotación estándar en secciones de la app.",
    ),
    Plan(
        id="plata",
        name="Plan Plata",
        price_ars=8000,
        duration_front_ms=2000,
        duration_back_ms=3000,
        display_mode="random",
        description="Mayor tiempo de exposición en rotación estándar.",
    ),
    Plan(
        id="oro",
        name="Plan Oro",
        price_ars=12000,
        duration_front_ms=2500,
        duration_back_ms=3500,
        display_mode="random",
        description="Exposición extendida en rotación estándar.",
    ),
    Plan(
        id="titanio",
        name="Plan Titanio",
        price_ars=18000,
        duration_front_ms=3000,
        duration_back_ms=5000,
        display_mode="random",
        description="Máxima exposición y duración en rotación estándar.",
    ),
    Plan(
        id="platino",
        name="Plan Platino",
        price_ars=25000,
        duration_front_ms=3000,
        duration_back_ms=5000,
        display_mode="on_app_start",
        description="Exposición premium al iniciar la aplicación.",
    ),
]


def collection_for_role(rol: str | None) -> str:
    """Maps a role to its user collection; unknown roles are general users."""
    return ROLE_COLLECTIONS.get(rol or "", USUARIOS_GENERALES_COLLECTION)
