from decimal import Decimal
from typing import Protocol, runtime_checkable

@runtime_checkable
class PaymentGatePort(Protocol):
    async def create_order(self, amount: Decimal, receipt: str) -> str: ...
    async def verify(self, order_ref: str, signature: str, payment_id: str) -> bool: ...
