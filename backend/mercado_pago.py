"""
Mercado Pago checkout preferences for plan + campaign subscriptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from backend.campanas import cotizar
from shared.types import Campana, Plan

PREFERENCES_ENDPOINT = "https://api.mercadopago.com/checkout/preferences"
REQUEST_TIMEOUT = 30  # seconds
STATEMENT_DESCRIPTOR = "MI-APP"


class MercadoPagoError(Exception):
    """The gateway rejected the request or answered without a preference id."""


def external_reference(creator_id: str, campaign_id: str) -> str:
    # The payment webhook splits this back into creator and campaign.
    return f"{creator_id}|{campaign_id}"


def build_preference_payload(
    plan: Plan,
    campana: Campana,
    creator_id: str,
    app_url: str,
    notification_url: str,
    payer_email: Optional[str] = None,
) -> dict:
    cotizacion = cotizar(plan, campana)
    reference = external_reference(creator_id, campana.id)
    app_url = app_url.rstrip("/")
    payload = {
        "items": [
            {
                "id": reference,
                "title": cotizacion.titulo,
                "quantity": 1,
                "unit_price": cotizacion.precio_final,
                "currency_id": "ARS",
            }
        ],
        "external_reference": reference,
        "back_urls": {
            "success": f"{app_url}/pagos/retorno?status=success",
            "failure": f"{app_url}/pagos/retorno?status=failure",
            "pending": f"{app_url}/pagos/retorno?status=pending",
        },
        "auto_return": "approved",
        "notification_url": notification_url,
        "statement_descriptor": STATEMENT_DESCRIPTOR,
        "metadata": {"uid": creator_id, "campaignId": campana.id, "planId": plan.id},
    }
    if payer_email:
        payload["payer"] = {"email": payer_email}
    return payload


@dataclass
class MercadoPagoClient:
    access_token: str
    endpoint: str = PREFERENCES_ENDPOINT

    def crear_preferencia(self, payload: dict) -> str:
        """
        Creates a checkout preference and returns its id.

        Raises:
            MercadoPagoError: On a non-2xx answer or a response without id.
            requests.RequestException: On transport errors.
        """
        response = requests.post(
            self.endpoint,
            json=payload,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            raise MercadoPagoError(
                f"Mercado Pago respondió {response.status_code}: {response.text}"
            )
        preference_id = response.json().get("id")
        if not isinstance(preference_id, str):
            raise MercadoPagoError("Mercado Pago respondió sin id de preferencia")
        return preference_id
