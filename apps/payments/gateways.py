"""
Payment Gateway Integration

The reconciliation code only talks to the PaymentGateway interface, so
it stays independent of any one provider's SDK objects. The production
implementation calls Stripe's REST API with requests.

Amounts crossing this interface are always integer minor units (cents).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

import requests
from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

logger = logging.getLogger(__name__)

INTENT_SUCCEEDED = "succeeded"


class PaymentGatewayError(Exception):
    """The gateway rejected a request or could not be reached."""


@dataclass(frozen=True)
class PaymentIntent:
    """Gateway-side charge as the reservation engine sees it."""
    id: str
    status: str
    amount: int
    currency: str
    client_secret: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == INTENT_SUCCEEDED


@dataclass(frozen=True)
class Refund:
    id: str
    payment_intent_id: str
    amount: int
    status: str


class PaymentGateway(ABC):
    """Provider-independent payment operations used by the reconciler."""

    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        """Create an intent to charge amount (minor units)."""

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch the current state of an intent."""

    @abstractmethod
    def create_refund(self, intent_id: str, amount: Optional[int] = None) -> Refund:
        """Refund amount (minor units) of an intent; None refunds it fully."""


class StripePaymentGateway(PaymentGateway):
    """
    Stripe REST API client

    Uses form-encoded requests authenticated with the secret key, the way
    Stripe's HTTP API expects. Network and API errors surface as
    PaymentGatewayError; nothing is retried here.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.STRIPE_API_KEY
        self.base_url = (base_url or settings.STRIPE_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _request(self, method: str, path: str, data: Dict[str, str] | None = None) -> dict:
        if not self.api_key:
            raise PaymentGatewayError("Stripe API key is not configured")

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method,
                url,
                data=data,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error calling Stripe {method} {path}: {e}")
            raise PaymentGatewayError(f"Could not reach Stripe: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            message = payload.get("error", {}).get("message") or response.text or "Unknown error"
            logger.error(f"Stripe {method} {path} returned {response.status_code}: {message}")
            raise PaymentGatewayError(f"Stripe error ({response.status_code}): {message}")

        return payload

    @staticmethod
    def _to_intent(payload: dict) -> PaymentIntent:
        return PaymentIntent(
            id=payload["id"],
            status=payload.get("status", ""),
            amount=int(payload.get("amount", 0)),
            currency=payload.get("currency", ""),
            client_secret=payload.get("client_secret") or "",
            metadata=dict(payload.get("metadata") or {}),
        )

    def create_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        data = {
            "amount": str(amount),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in metadata.items():
            data[f"metadata[{key}]"] = str(value)

        intent = self._to_intent(self._request("POST", "payment_intents", data))
        logger.info(f"Stripe payment intent {intent.id} created for {amount} {currency}")
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        return self._to_intent(self._request("GET", f"payment_intents/{intent_id}"))

    def create_refund(self, intent_id: str, amount: Optional[int] = None) -> Refund:
        data = {"payment_intent": intent_id}
        if amount is not None:
            data["amount"] = str(amount)

        payload = self._request("POST", "refunds", data)
        refund = Refund(
            id=payload["id"],
            payment_intent_id=payload.get("payment_intent", intent_id),
            amount=int(payload.get("amount", amount or 0)),
            status=payload.get("status", ""),
        )
        logger.info(f"Stripe refund {refund.id} of {refund.amount} issued for {intent_id}")
        return refund


def get_payment_gateway() -> PaymentGateway:
    """Instantiate the gateway class named by settings.PAYMENT_GATEWAY_CLASS"""
    gateway_class = import_string(settings.PAYMENT_GATEWAY_CLASS)
    return gateway_class()
