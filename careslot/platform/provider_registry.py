from careslot.core.config import settings
from careslot.platform.ports.event_bus import EventBusPort
from careslot.platform.adapters.bus_noop import NoopEventBus
from careslot.platform.ports.payment_gate import PaymentGatePort
from careslot.platform.adapters.payments_local import LocalPaymentGate
from careslot.platform.ports.notifications import NotificationTriggerPort
from careslot.platform.adapters.notify_bus import EventBusNotifier

class ProviderRegistry:
    _event_bus: EventBusPort | None = None
    _payment_gate: PaymentGatePort | None = None
    _notifier: NotificationTriggerPort | None = None

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                from careslot.platform.adapters.bus_redis import RedisEventBus
                cls._event_bus = RedisEventBus()
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

    @classmethod
    def payment_gate(cls) -> PaymentGatePort:
        if cls._payment_gate is None:
            if settings.PAYMENT_PROVIDER == "razorpay":
                from careslot.platform.adapters.payments_razorpay import RazorpayPaymentGate
                cls._payment_gate = RazorpayPaymentGate()
            else:
                cls._payment_gate = LocalPaymentGate(settings.PAYMENT_KEY_SECRET)
        return cls._payment_gate

    @classmethod
    def notifier(cls) -> NotificationTriggerPort:
        if cls._notifier is None:
            cls._notifier = EventBusNotifier(cls.event_bus())
        return cls._notifier

registry = ProviderRegistry()
