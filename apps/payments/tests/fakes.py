"""In-memory payment gateway for tests."""

from __future__ import annotations

from dataclasses import replace
from itertools import count
from typing import Dict, List, Optional

from apps.payments.gateways import (
    INTENT_SUCCEEDED,
    PaymentGateway,
    PaymentGatewayError,
    PaymentIntent,
    Refund,
)


class FakePaymentGateway(PaymentGateway):
    """
    Records intents and refunds instead of calling a provider.

    Intents created through create_intent start unpaid; tests mark them
    paid with succeed() or seed ready-made ones with add_intent().
    refund_failures_after makes create_refund raise once that many
    refunds have gone through.
    """

    def __init__(self):
        self.intents: Dict[str, PaymentIntent] = {}
        self.refunds: List[Refund] = []
        self.refund_failures_after: Optional[int] = None
        self.unavailable = False
        self._ids = count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_fake_{next(self._ids)}"

    def _check_available(self):
        if self.unavailable:
            raise PaymentGatewayError("Gateway unavailable")

    def add_intent(
        self,
        amount: int,
        status: str = INTENT_SUCCEEDED,
        intent_id: str | None = None,
        currency: str = "usd",
    ) -> PaymentIntent:
        intent_id = intent_id or self._next_id("pi")
        intent = PaymentIntent(
            id=intent_id,
            status=status,
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret",
        )
        self.intents[intent_id] = intent
        return intent

    def succeed(self, intent_id: str) -> PaymentIntent:
        intent = replace(self.intents[intent_id], status=INTENT_SUCCEEDED)
        self.intents[intent_id] = intent
        return intent

    def create_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        self._check_available()
        intent_id = self._next_id("pi")
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self._check_available()
        try:
            return self.intents[intent_id]
        except KeyError:
            raise PaymentGatewayError(f"No such payment_intent: '{intent_id}'")

    def create_refund(self, intent_id: str, amount: Optional[int] = None) -> Refund:
        self._check_available()
        if self.refund_failures_after is not None and len(self.refunds) >= self.refund_failures_after:
            raise PaymentGatewayError("Refund declined")

        refund = Refund(
            id=self._next_id("re"),
            payment_intent_id=intent_id,
            amount=amount if amount is not None else self.intents[intent_id].amount,
            status="succeeded",
        )
        self.refunds.append(refund)
        return refund

    def refunded_for(self, intent_id: str) -> int:
        return sum(r.amount for r in self.refunds if r.payment_intent_id == intent_id)
