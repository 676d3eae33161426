"""Signed client for the last-mile delivery API (quotations and orders)."""

from __future__ import annotations

import json
import logging
import uuid

import requests

from delivery.errors import TransportError, UpstreamError
from delivery.models import Coordinates, DeliveryOrderResult, Quote, StoreConfig, StoreContact
from delivery.secrets import SecretProvider
from delivery.signing import sign_request
from delivery.stops import ADDRESS_LOCALE, build_stops

log = logging.getLogger(__name__)

API_BASE_URL = "https://rest.lalamove.com/v3"
API_SANDBOX_URL = "https://rest.sandbox.lalamove.com/v3"

API_KEY_NAME = "LALAMOVE_API_KEY"
API_SECRET_NAME = "LALAMOVE_API_SECRET"

# Every parcel this store hands over is a small food order.
FOOD_ITEM = {
    "quantity": "1",
    "weight": "LESS_THAN_3_KG",
    "categories": ["FOOD_DELIVERY"],
    "handlingInstructions": ["KEEP_UPRIGHT"],
}


def base_url(sandbox: bool) -> str:
    return API_SANDBOX_URL if sandbox else API_BASE_URL


def _to_number(value) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _object(value) -> dict:
    return value if isinstance(value, dict) else {}


class DeliveryClient:
    """Client for the ``/quotations`` and ``/orders`` endpoints.

    Credentials are resolved through ``secrets`` on every call, before any
    network traffic, so a missing key fails fast with ConfigurationError.
    """

    def __init__(
        self,
        secrets: SecretProvider | None = None,
        session: requests.Session | None = None,
        timeout: float | None = 20,
    ):
        self.secrets = secrets or SecretProvider.from_env()
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, path: str, payload: dict, market: str, sandbox: bool) -> dict:
        """Sign and send one POST, returning the parsed JSON response.

        Raises:
            ConfigurationError: API key or secret is missing.
            UpstreamError: non-2xx status or a body that is not a JSON object.
            TransportError: the request never got a response.
        """
        api_key = self.secrets.get_required_secret(API_KEY_NAME)
        secret = self.secrets.get_required_secret(API_SECRET_NAME)

        body = json.dumps(payload)
        signed = sign_request("POST", path, body, secret)
        url = f"{base_url(sandbox)}{path}"
        headers = {
            "Content-Type": "application/json",
            "X-LLM-Market": market,
            "Authorization": f"hmac {api_key}:{signed.signature}",
            "X-Request-Id": str(uuid.uuid4()),
        }

        try:
            resp = self.session.post(url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            log.error("Delivery API unreachable url=%s error=%s", url, exc)
            raise TransportError(str(exc)) from exc

        text = resp.text
        if not 200 <= resp.status_code < 300:
            log.error(
                "Delivery API error status=%s url=%s body=%s",
                resp.status_code,
                url,
                text,
            )
            raise UpstreamError(resp.status_code, text)

        try:
            parsed = json.loads(text)
        except ValueError:
            log.error("Delivery API returned non-JSON body url=%s", url)
            raise UpstreamError(resp.status_code, text) from None
        if not isinstance(parsed, dict):
            log.error("Delivery API returned a non-object body url=%s", url)
            raise UpstreamError(resp.status_code, text)
        return parsed

    def request_quote(
        self,
        config: StoreConfig,
        address: str,
        coordinates: Coordinates,
    ) -> Quote:
        """Ask the provider to price a delivery from the store to ``address``."""
        payload = {
            "data": {
                "serviceType": config.service_type,
                "language": ADDRESS_LOCALE,
                "stops": build_stops(config, address, coordinates),
                "item": FOOD_ITEM,
            }
        }
        response = self._post("/quotations", payload, config.market, config.sandbox)
        data = _object(response.get("data"))
        breakdown = _object(data.get("priceBreakdown"))
        return Quote(
            quotation_id=data.get("quotationId"),
            price=_to_number(breakdown.get("total")),
            currency=breakdown.get("currency"),
            expires_at=data.get("expiresAt"),
        )

    def create_order(
        self,
        quotation_id: str,
        recipient_name: str,
        recipient_phone: str,
        contact: StoreContact | StoreConfig,
        metadata: dict | None = None,
        remarks: str = "",
        sender_stop_id: str | None = None,
        recipient_stop_id: str | None = None,
    ) -> DeliveryOrderResult:
        """Turn a quotation into a delivery order.

        Stop ids are optional; the provider binds sender and recipient to the
        stops of the quotation. ``metadata`` is passed through as is.
        A full StoreConfig works too, via its ``contact`` property.
        """
        if isinstance(contact, StoreConfig):
            contact = contact.contact
        sender = {"name": contact.store_name, "phone": contact.store_phone}
        if sender_stop_id:
            sender["stopId"] = sender_stop_id
        recipient = {"name": recipient_name, "phone": recipient_phone, "remarks": remarks or ""}
        if recipient_stop_id:
            recipient["stopId"] = recipient_stop_id

        payload = {
            "data": {
                "quotationId": quotation_id,
                "sender": sender,
                "recipients": [recipient],
                "isPODEnabled": True,
                "metadata": metadata or {},
            }
        }
        response = self._post("/orders", payload, contact.market, contact.sandbox)
        data = _object(response.get("data"))
        return DeliveryOrderResult(
            order_id=data.get("orderId"),
            status=data.get("status"),
            share_link=data.get("shareLink"),
            driver_id=data.get("driverId"),
        )
