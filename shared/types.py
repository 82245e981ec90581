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

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class Rol(str, Enum):
    """Account role. The value is what clients send and what is stored."""

    USUARIO = "usuario"
    PRESTADOR = "prestador"
    COMERCIO = "comercio"


DisplayMode = Literal["random", "on_app_start"]


@dataclass(frozen=True)
class Campana:
    """A subscription duration with its discount (0.1 means 10%)."""

    id: str
    name: str
    months: int
    discount: float


@dataclass(frozen=True)
class Plan:
    """A pricing tier. `price_ars` is the base price per month."""

    id: str
    name: str
    price_ars: int
    duration_front_ms: int
    duration_back_ms: int
    display_mode: DisplayMode
    description: str


@dataclass
class Cotizacion:
    plan_id: str
    campaign_id: str
    titulo: str
    precio_base_mensual: int
    meses: int
    descuento: float
    precio_final: float
