"""
Mail relay client and notification dispatcher tests
"""
import json

import httpx
import pytest

from zordon_hub.config import Settings, TicketStatus
from zordon_hub.core import MailDeliveryException
from zordon_hub.notifications.application import NotificationDispatcher
from zordon_hub.notifications.infrastructure import CircuitBreaker, HTTPMailClient
from zordon_hub.tickets.domain import Ticket

RELAY = "http://relay.test/v1/send"


def relay_settings(**overrides):
    values = dict(mail_api_url=RELAY, mail_api_key="relay-key", mail_from="zordon@command-center.test")
    values.update(overrides)
    return Settings(**values)


def client_with(handler, **settings_overrides):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HTTPMailClient(relay_settings(**settings_overrides), http_client=http, backoff_base=0)


class TestHTTPMailClient:

    @pytest.mark.asyncio
    async def test_posts_message_to_relay(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202, json={"id": "relay-123"})

        client = client_with(handler)
        result = await client.send_mail("billy@command-center.test", "Hi", "Body")

        assert result == {"message_id": "relay-123"}
        assert seen[0].headers["Authorization"] == "Bearer relay-key"
        body = json.loads(seen[0].content)
        assert body["from"] == "zordon@command-center.test"
        assert body["to"] == "billy@command-center.test"
        assert body["html"] == "Body"
        await client.close()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        responses = iter([httpx.Response(503), httpx.Response(200, json={"message_id": "m-2"})])

        client = client_with(lambda request: next(responses))
        assert (await client.send_mail("a@b.test", "s", "t"))["message_id"] == "m-2"

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = client_with(handler)
        with pytest.raises(MailDeliveryException) as exc_info:
            await client.send_mail("a@b.test", "s", "t")

        assert len(calls) == 3
        assert "500" in exc_info.value.message
        assert exc_info.value.kind == "upstream"

    @pytest.mark.asyncio
    async def test_transport_errors_raise(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = client_with(handler)
        with pytest.raises(MailDeliveryException):
            await client.send_mail("a@b.test", "s", "t")

    @pytest.mark.asyncio
    async def test_development_mode_without_relay(self):
        client = HTTPMailClient(relay_settings(mail_api_url=None))
        result = await client.send_mail("a@b.test", "s", "t")
        assert result["message_id"].startswith("dev-")


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        breaker.record_failure()
        assert breaker.allow_request()
        breaker.record_failure()
        assert not breaker.allow_request()

    def test_half_open_after_timeout(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        breaker.record_failure()
        assert breaker.state == "half_open"
        breaker.record_success()
        assert breaker.state == "closed"


class TestDispatcher:

    @pytest.mark.asyncio
    async def test_assignment_mails_both_parties(self, mailer, people):
        ticket = Ticket(id="t-1", title="Zord hangar leak", reporter_id=people.jason.id,
                        assignee_id=people.billy.id, status=TicketStatus.ASSIGNED)

        sent = await NotificationDispatcher(mailer).ticket_assigned(ticket, people.billy, people.jason)

        assert sent == 2
        assert mailer.recipients() == [people.billy.email, people.jason.email]
        assert "Zord hangar leak" in mailer.sent[0]["subject"]

    @pytest.mark.asyncio
    async def test_deadline_reminder_raises_on_failure(self, mailer, people):
        ticket = Ticket(id="t-1", title="Zord hangar leak", reporter_id=people.jason.id,
                        assignee_id=people.billy.id, status=TicketStatus.ASSIGNED)
        mailer.failing.add(people.billy.email)

        with pytest.raises(MailDeliveryException):
            await NotificationDispatcher(mailer).deadline_reminder(ticket, people.billy)
