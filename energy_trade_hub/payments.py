"""
Payment hand-off

The engine never holds funds. A purchase forwards the buyer's attached
payment to the seller through a gateway, which reports whether the hand-off
succeeded so the engine can commit or roll back.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, List

from pydantic import BaseModel

from .logging_config import logger

ReceiptHook = Callable[[str, int], None]


class PaymentReceipt(BaseModel):
    payer: str
    recipient: str
    amount: int


class PaymentGateway(ABC):
    """Opaque side-effecting payment collaborator"""

    @abstractmethod
    def send(self, payer: str, recipient: str, amount: int) -> bool:
        """
        Forward a payment to a recipient.

        The recipient may run arbitrary code on receipt, including calls
        back into the engine.

        Returns:
            True if the recipient was paid, False if the hand-off failed and
            nothing was transferred
        """

    @abstractmethod
    def refund(self, receipt: PaymentReceipt) -> None:
        """Reverse a payment this gateway reported as sent"""


class InMemoryPaymentGateway(PaymentGateway):
    """Gateway crediting in-process balances, with per-recipient receipt hooks"""

    def __init__(self):
        self.balances: Dict[str, int] = defaultdict(int)
        self.receipts: List[PaymentReceipt] = []
        self.receipt_hooks: Dict[str, ReceiptHook] = {}

    def on_receipt(self, recipient: str, hook: ReceiptHook) -> None:
        """Register code to run whenever the recipient is paid"""
        self.receipt_hooks[recipient] = hook

    def send(self, payer: str, recipient: str, amount: int) -> bool:
        receipt = PaymentReceipt(payer=payer, recipient=recipient, amount=amount)
        self.balances[recipient] += amount
        self.receipts.append(receipt)

        hook = self.receipt_hooks.get(recipient)
        if hook is None:
            return True

        try:
            hook(payer, amount)
        except Exception as e:
            logger.warning(f"Receipt hook for {recipient} rejected payment of {amount}: {str(e)}")
            self.balances[recipient] -= amount
            self.receipts = [r for r in self.receipts if r is not receipt]
            return False

        return True

    def refund(self, receipt: PaymentReceipt) -> None:
        self.balances[receipt.recipient] -= receipt.amount
        # Latest matching receipt
        for i in range(len(self.receipts) - 1, -1, -1):
            if self.receipts[i] == receipt:
                del self.receipts[i]
                break

    def balance_of(self, principal: str) -> int:
        return self.balances.get(principal, 0)
