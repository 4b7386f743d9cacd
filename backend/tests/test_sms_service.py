"""Tests for the SMS gateway and notification dispatcher."""

import httpx
import pytest

from barqueue.services.sms_service import DISABLED, FAILED, SENT, SmsGateway


class TestMessages:
    def test_ready_message(self, dispatcher, make_order):
        order = make_order(name="Ana", drink_name="Negroni")
        assert dispatcher.ready_message(order) == "Hi Ana! Your Negroni is ready. Pick it up at the bar."

    def test_reminder_message(self, dispatcher, make_order):
        order = make_order(name="Ana", drink_name="Negroni")
        assert dispatcher.reminder_message(order) == (
            "Reminder: Hi Ana! Your Negroni is waiting for you at the bar."
        )


class TestDispatch:
    @pytest.mark.asyncio
    async def test_sends_through_twilio(self, dispatcher, twilio, make_order):
        order = make_order(phone="11999998888", drink_name="Caipirinha")

        result = await dispatcher.dispatch_ready(order)

        assert result.status == SENT
        assert result.ok
        assert result.channel == "sms"
        assert result.sid == "SM123"
        assert len(twilio.requests) == 1
        request = twilio.requests[0]
        assert request.url.path.endswith("/Accounts/AC0000000000/Messages.json")
        assert request.headers["authorization"].startswith("Basic ")
        form = twilio.forms[0]
        assert form["To"] == "+5511999998888"
        assert form["From"] == "+15550001111"
        assert "Caipirinha" in form["Body"]

    @pytest.mark.asyncio
    async def test_messaging_service_preferred_over_number(self, make_dispatcher, twilio, make_order):
        dispatcher = make_dispatcher(twilio_messaging_service_sid="MG999")

        await dispatcher.dispatch_reminder(make_order())

        form = twilio.forms[0]
        assert form["MessagingServiceSid"] == "MG999"
        assert "From" not in form
        assert form["Body"].startswith("Reminder:")

    @pytest.mark.asyncio
    async def test_disabled_flag_skips_send(self, make_dispatcher, twilio, make_order):
        dispatcher = make_dispatcher(sms_enabled=False)

        result = await dispatcher.dispatch_ready(make_order())

        assert result.status == DISABLED
        assert result.channel == "disabled"
        assert result.reason == "sms_disabled"
        assert twilio.requests == []

    @pytest.mark.asyncio
    async def test_missing_credentials_skip_send(self, make_dispatcher, twilio, make_order):
        dispatcher = make_dispatcher(twilio_auth_token=None)

        result = await dispatcher.dispatch_ready(make_order())

        assert result.status == DISABLED
        assert result.reason == "sms_not_configured"
        assert twilio.requests == []

    @pytest.mark.asyncio
    async def test_gateway_rejection_is_reported(self, dispatcher, twilio, make_order):
        twilio.status_code = 400
        twilio.payload = {
            "code": 21211,
            "message": "The 'To' number is not a valid phone number.",
            "status": 400,
        }

        result = await dispatcher.dispatch_ready(make_order())

        assert result.status == FAILED
        assert not result.ok
        assert result.error_code == 21211
        assert "not a valid phone number" in result.error

    @pytest.mark.asyncio
    async def test_error_code_in_success_body_is_failure(self, dispatcher, twilio, make_order):
        twilio.payload = {"sid": "SM1", "error_code": 30003}

        result = await dispatcher.dispatch_ready(make_order())

        assert result.status == FAILED
        assert result.error_code == 30003


class TestGateway:
    @pytest.mark.asyncio
    async def test_transport_error_does_not_raise(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = SmsGateway("AC1", "token", from_number="+15550001111", transport=httpx.MockTransport(boom))
        result = await gateway.send("+5511999998888", "hello")
        await gateway.close()

        assert result.success is False
        assert "connection refused" in result.error

    def test_configured_requires_sender(self):
        assert not SmsGateway("AC1", "token").configured
        assert SmsGateway("AC1", "token", messaging_service_sid="MG1").configured
