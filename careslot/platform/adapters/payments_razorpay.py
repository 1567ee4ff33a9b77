import logging
from decimal import Decimal
import httpx
from careslot.core.config import settings
from careslot.platform.adapters.payments_local import LocalPaymentGate

log = logging.getLogger("payments.razorpay")

class RazorpayPaymentGate(LocalPaymentGate):
    """Orders are created on the gateway; signatures are verified locally with the shared secret."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        if not settings.PAYMENT_KEY_ID:
            raise RuntimeError("PAYMENT_KEY_ID not configured")
        super().__init__(settings.PAYMENT_KEY_SECRET)
        self.key_id = settings.PAYMENT_KEY_ID
        self.base_url = settings.PAYMENT_API_URL.rstrip("/")
        self.currency = settings.PAYMENT_CURRENCY
        self.transport = transport

    async def create_order(self, amount: Decimal, receipt: str) -> str:
        body = {
            "amount": int(amount * 100),  # smallest currency unit
            "currency": self.currency,
            "receipt": receipt[:40],
            "payment_capture": 1,
        }
        async with httpx.AsyncClient(base_url=self.base_url, auth=(self.key_id, self.secret), timeout=10.0, transport=self.transport) as client:
            resp = await client.post("/orders", json=body)
            resp.raise_for_status()
            order_id = resp.json()["id"]
        log.info(f"[RAZORPAY] order={order_id} amount={amount} receipt={receipt}")
        return order_id
