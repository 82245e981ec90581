"""
Static campaign/plan lookups and price quotes.
"""

from __future__ import annotations

from typing import Optional

from shared.constants import CAMPANAS, PLANES
from shared.types import Campana, Cotizacion, Plan


def find_campana(campaign_id: str | None) -> Optional[Campana]:
    return next((c for c in CAMPANAS if c.id == campaign_id), None)


def find_plan(plan_id: str | None) -> Optional[Plan]:
    return next((p for p in PLANES if p.id == plan_id), None)


def precio_final(plan: Plan, campana: Campana) -> float:
    """Monthly price times campaign months, minus the campaign discount."""
    return round(plan.price_ars * campana.months * (1 - campana.discount), 2)


def cotizar(plan: Plan, campana: Campana) -> Cotizacion:
    return Cotizacion(
        plan_id=plan.id,
        campaign_id=campana.id,
        titulo=f"{plan.name} - {campana.name}",
        precio_base_mensual=plan.price_ars,
        meses=campana.months,
        descuento=campana.discount,
        precio_final=precio_final(plan, campana),
    )
