from unittest import mock

import pytest
import requests
from django.test import override_settings

from apps.payments.gateways import (
    PaymentGatewayError,
    StripePaymentGateway,
    get_payment_gateway,
)
from apps.payments.tests.fakes import FakePaymentGateway


def _response(status_code=200, payload=None, text=""):
    response = mock.Mock(status_code=status_code, text=text)
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def stripe(session):
    return StripePaymentGateway(
        api_key="sk_test_123",
        base_url="https://stripe.test/v1/",
        timeout=5,
        session=session,
    )


def test_create_intent_sends_form_encoded_metadata(stripe, session):
    session.request.return_value = _response(payload={
        "id": "pi_123",
        "status": "requires_payment_method",
        "amount": 20000,
        "currency": "usd",
        "client_secret": "pi_123_secret_abc",
        "metadata": {"bookingId": "7"},
    })

    intent = stripe.create_intent(20000, "USD", {"bookingId": 7, "reason": "MODIFY_BOOKING"})

    session.request.assert_called_once_with(
        "POST",
        "https://stripe.test/v1/payment_intents",
        data={
            "amount": "20000",
            "currency": "usd",
            "automatic_payment_methods[enabled]": "true",
            "metadata[bookingId]": "7",
            "metadata[reason]": "MODIFY_BOOKING",
        },
        headers={"Authorization": "Bearer sk_test_123", "Accept": "application/json"},
        timeout=5,
    )
    assert intent.id == "pi_123"
    assert intent.client_secret == "pi_123_secret_abc"
    assert not intent.succeeded


def test_retrieve_intent_parses_status_and_amount(stripe, session):
    session.request.return_value = _response(payload={
        "id": "pi_9",
        "status": "succeeded",
        "amount": 30000,
        "currency": "usd",
    })

    intent = stripe.retrieve_intent("pi_9")

    assert session.request.call_args[0][:2] == ("GET", "https://stripe.test/v1/payment_intents/pi_9")
    assert intent.succeeded
    assert intent.amount == 30000


def test_partial_refund_passes_amount(stripe, session):
    session.request.return_value = _response(payload={
        "id": "re_1",
        "payment_intent": "pi_9",
        "amount": 5000,
        "status": "succeeded",
    })

    refund = stripe.create_refund("pi_9", 5000)

    assert session.request.call_args.kwargs["data"] == {"payment_intent": "pi_9", "amount": "5000"}
    assert refund.amount == 5000


def test_api_errors_carry_the_provider_message(stripe, session):
    session.request.return_value = _response(
        status_code=404,
        payload={"error": {"message": "No such payment_intent: 'pi_x'"}},
    )

    with pytest.raises(PaymentGatewayError) as excinfo:
        stripe.retrieve_intent("pi_x")

    assert "No such payment_intent" in str(excinfo.value)
    assert "404" in str(excinfo.value)


def test_network_errors_become_gateway_errors(stripe, session):
    session.request.side_effect = requests.exceptions.ConnectionError("connection reset")

    with pytest.raises(PaymentGatewayError):
        stripe.create_refund("pi_9")


def test_missing_api_key_is_refused_before_any_request(session):
    gateway = StripePaymentGateway(api_key="", base_url="https://stripe.test/v1", timeout=5, session=session)

    with pytest.raises(PaymentGatewayError):
        gateway.retrieve_intent("pi_1")
    session.request.assert_not_called()


def test_gateway_class_comes_from_settings():
    with override_settings(PAYMENT_GATEWAY_CLASS="apps.payments.tests.fakes.FakePaymentGateway"):
        assert isinstance(get_payment_gateway(), FakePaymentGateway)
