import hashlib
import hmac
import logging
import uuid
from decimal import Decimal
from careslot.platform.ports.payment_gate import PaymentGatePort

log = logging.getLogger("payments.local")

def checkout_signature(secret: str, order_ref: str, payment_id: str) -> str:
    # gateway convention: HMAC-SHA256 over "<order_id>|<payment_id>"
    return hmac.new(secret.encode(), f"{order_ref}|{payment_id}".encode(), hashlib.sha256).hexdigest()

class LocalPaymentGate(PaymentGatePort):
    """Issues order refs locally and verifies gateway-style checkout signatures."""

    def __init__(self, secret: str):
        self.secret = secret

    async def create_order(self, amount: Decimal, receipt: str) -> str:
        ref = f"order_{uuid.uuid4().hex[:14]}"
        log.info(f"[LOCAL PAYMENTS] order={ref} amount={amount} receipt={receipt}")
        return ref

    async def verify(self, order_ref: str, signature: str, payment_id: str) -> bool:
        expected = checkout_signature(self.secret, order_ref, payment_id)
        return hmac.compare_digest(expected, signature or "")
