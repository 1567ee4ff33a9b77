import asyncio
import json
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest

from careslot.core.config import settings
from careslot.platform.adapters import bus_redis
from careslot.platform.adapters.bus_noop import NoopEventBus
from careslot.platform.adapters.notify_bus import TOPIC, EventBusNotifier
from careslot.platform.adapters.payments_local import LocalPaymentGate, checkout_signature
from careslot.platform.adapters.payments_razorpay import RazorpayPaymentGate
from careslot.platform.ports.notifications import fire


def appointment(**overrides) -> SimpleNamespace:
    fields = dict(
        id=uuid.uuid4(), user_id=101, doctor_id=7, date=date(2026, 3, 2), start_minute=570, end_minute=600,
        status='confirmed', consultation_type='free', cancel_reason=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_local_gate_verifies_checkout_signatures() -> None:
    gate = LocalPaymentGate('secret')

    async def scenario():
        order = await gate.create_order(Decimal('500.00'), 'receipt-1')
        good = await gate.verify(order, checkout_signature('secret', order, 'pay_1'), 'pay_1')
        swapped = await gate.verify(order, checkout_signature('secret', order, 'pay_1'), 'pay_2')
        return order, good, swapped

    order, good, swapped = asyncio.run(scenario())

    assert order.startswith('order_')
    assert good is True
    assert swapped is False


def test_razorpay_gate_creates_orders_in_minor_units(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['path'] = request.url.path
        seen['body'] = json.loads(request.content)
        seen['auth'] = request.headers['authorization']
        return httpx.Response(200, json={'id': 'order_remote42'})

    monkeypatch.setattr(settings, 'PAYMENT_KEY_ID', 'rzp_test_key')
    gate = RazorpayPaymentGate(transport=httpx.MockTransport(handler))

    order = asyncio.run(gate.create_order(Decimal('499.50'), 'hold-abc'))

    assert order == 'order_remote42'
    assert seen['path'].endswith('/orders')
    assert seen['body']['amount'] == 49950
    assert seen['body']['currency'] == settings.PAYMENT_CURRENCY
    assert seen['auth'].startswith('Basic ')


def test_razorpay_gate_requires_a_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, 'PAYMENT_KEY_ID', None)

    with pytest.raises(RuntimeError):
        RazorpayPaymentGate()


def test_notifier_publishes_appointment_events() -> None:
    bus = NoopEventBus()
    notifier = EventBusNotifier(bus)
    appt = appointment()

    asyncio.run(notifier.on_confirmed(appt))
    asyncio.run(notifier.on_cancelled(appointment(id=appt.id, status='cancelled', cancel_reason='clash')))

    confirmed, cancelled = bus.published
    assert confirmed['topic'] == TOPIC
    assert confirmed['key'] == str(appt.id)
    assert confirmed['value']['event_type'] == 'APPT_CONFIRMED'
    assert confirmed['value']['start_time'] == '09:30'
    assert cancelled['value']['event_type'] == 'APPT_CANCELLED'
    assert cancelled['value']['reason'] == 'clash'


def test_failed_notification_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    class Broken:
        async def on_confirmed(self, appointment) -> None:
            raise ConnectionError('smtp down')

    asyncio.run(fire(Broken(), 'on_confirmed', appointment()))

    assert 'Notification on_confirmed failed' in caplog.text


def test_redis_bus_appends_to_the_stream(monkeypatch: pytest.MonkeyPatch) -> None:
    class FakeRedis:
        def __init__(self) -> None:
            self.entries = []
            self.closed = False

        async def xadd(self, stream, fields, maxlen=None, approximate=None):
            self.entries.append((stream, fields, maxlen))
            return '1700000000000-0'

        async def aclose(self) -> None:
            self.closed = True

    fake = FakeRedis()
    monkeypatch.setattr(settings, 'REDIS_URL', 'redis://localhost:6379/0')
    monkeypatch.setattr(bus_redis, 'redis_from_url', lambda *args, **kwargs: fake)
    bus = bus_redis.RedisEventBus()

    asyncio.run(bus.publish(topic=TOPIC, key='k1', value={'event_type': 'APPT_CONFIRMED'}))
    asyncio.run(bus.close())

    ((stream, fields, maxlen),) = fake.entries
    assert stream == 'careslot.events'
    assert json.loads(fields['value']) == {'event_type': 'APPT_CONFIRMED'}
    assert json.loads(fields['headers']) == {'request_id': '-'}
    assert maxlen == settings.REDIS_STREAM_MAXLEN
    assert fake.closed is True
