"""
Certificate Lifecycle Engine

Orchestrates creation, listing, purchase and retirement of certificates
under role-gated rules.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from .events import NotificationLog
from .exceptions import (
    AlreadyRetired,
    EnergyTradeHubError,
    InsufficientPayment,
    InvalidAmount,
    NotForSale,
    PaymentFailed,
)
from .logging_config import logger
from .models import (
    CertificateState,
    EnergyCertificate,
    EventType,
    LedgerEvent,
    Role,
    SaleListing,
)
from .payments import InMemoryPaymentGateway, PaymentGateway, PaymentReceipt
from .registry import LedgerState
from .settings import settings


class LifecycleEngine:
    """State machine for energy certificates"""

    def __init__(
        self,
        state: LedgerState,
        payments: PaymentGateway,
        log: Optional[NotificationLog] = None,
    ):
        """
        Initialize the engine.

        Args:
            state: Ledger tables the engine reads and mutates
            payments: Gateway used to forward purchase payments to sellers
            log: Notification log, a fresh one if not provided
        """
        self.state = state
        self.payments = payments
        self.log = log if log is not None else NotificationLog()
        self._depth = 0
        self._lock = threading.RLock()
        self._settled: List[PaymentReceipt] = []

    @contextmanager
    def _operation(self, name: str, rollback: bool = False) -> Iterator[None]:
        """
        Run one externally triggered operation.

        Operations are serialized on the engine lock. A call re-entering from
        a receipt hook runs on the same thread and holds the lock already;
        calls from other threads wait for the outermost operation to finish.

        With ``rollback`` the whole ledger is snapshotted first and restored
        if the operation fails, including anything nested calls changed in
        the meantime. Payments those nested calls settled are refunded
        through the gateway. Notifications are published once the outermost
        operation commits.
        """
        with self._lock:
            snapshot = self.state.snapshot() if rollback else None
            mark = len(self.log)
            settled_mark = len(self._settled)
            self._depth += 1
            try:
                yield
            except Exception as e:
                if snapshot is not None:
                    self.state.restore(snapshot)
                    self.log.truncate(mark)
                    self._refund_since(settled_mark)
                if isinstance(e, EnergyTradeHubError):
                    logger.warning(f"{name} rejected: {e.message}")
                raise
            finally:
                self._depth -= 1

            if self._depth == 0:
                self._settled.clear()
                self.log.publish()

    def _refund_since(self, mark: int) -> None:
        while len(self._settled) > mark:
            receipt = self._settled.pop()
            logger.warning(
                f"Refunding {receipt.amount} paid to {receipt.recipient} "
                f"by {receipt.payer} in a rolled back purchase"
            )
            self.payments.refund(receipt)

    # Roles

    def register_as_consumer(self, caller: str) -> bool:
        """Self-service grant of the Consumer role"""
        with self._operation("register_as_consumer"):
            granted = self.state.roles.grant_role(Role.CONSUMER, caller, caller)
        if granted:
            logger.info(f"{caller} registered as consumer")
        return granted

    def add_provider(self, principal: str, caller: str) -> bool:
        """Grant the Provider role; the caller must be an Admin"""
        with self._operation("add_provider"):
            granted = self.state.roles.grant_role(Role.PROVIDER, principal, caller)
        if granted:
            logger.info(f"{caller} granted provider role to {principal}")
        return granted

    # Lifecycle transitions

    def create_token(
        self,
        issuer: str,
        amount: int,
        price_per_unit: int,
        start_date: int,
        end_date: int,
        source_type: str,
        delivery_point: str,
        terms_hash: str,
        metadata_ref: str = "",
    ) -> int:
        """
        Create a certificate owned by the calling provider.

        Returns:
            The new certificate ID

        Raises:
            Unauthorized: If the issuer is not a Provider
            InvalidAmount: If the energy amount is not positive
            InvalidWindow: If the delivery window is empty
        """
        with self._operation("create_token"):
            self.state.roles.check_role(issuer, Role.PROVIDER)
            token_id = self.state.certificates.create(
                issuer,
                amount,
                price_per_unit,
                start_date,
                end_date,
                source_type,
                delivery_point,
                terms_hash,
                metadata_ref,
            )
            self.log.record(
                EventType.CREATED,
                issuer,
                self.state.certificates.get(token_id),
                self.state.listings.get(token_id),
            )

        logger.info(
            f"Certificate {token_id} created by {issuer}: "
            f"{amount} {settings.ENERGY_UNIT} {source_type} at {delivery_point}"
        )
        return token_id

    def list_token_for_sale(self, token_id: int, price: int, caller: str) -> SaleListing:
        """
        Offer an active certificate for sale at a price set by its owner.

        Raises:
            NotOwner: If the caller does not own the certificate
            AlreadyRetired: If the certificate has been retired
            InvalidAmount: If the price is negative
        """
        with self._operation("list_token_for_sale"):
            self.state.listings.check_owner(token_id, caller)
            cert = self.state.certificates.get(token_id)
            if not cert.is_active:
                raise AlreadyRetired(
                    f"Certificate {token_id} is retired and cannot be listed",
                    token_id=token_id,
                )
            listing = self.state.listings.list(token_id, price, caller)
            self.log.record(EventType.LISTED, caller, cert, listing)

        logger.info(f"Certificate {token_id} listed by {caller} at {price} {settings.CURRENCY_UNIT}")
        return listing.model_copy()

    def withdraw_token_from_sale(self, token_id: int, caller: str) -> SaleListing:
        """Take a certificate off sale; harmless if it was never listed"""
        with self._operation("withdraw_token_from_sale"):
            listing = self.state.listings.withdraw(token_id, caller)
            self.log.record(
                EventType.WITHDRAWN, caller, self.state.certificates.get(token_id), listing
            )

        logger.info(f"Certificate {token_id} withdrawn from sale by {caller}")
        return listing.model_copy()

    def buy_token(self, token_id: int, buyer: str, payment: int) -> LedgerEvent:
        """
        Swap ownership of a listed certificate for the attached payment.

        Every state change that gates a purchase (clearing the listing and
        reassigning the owner) is made before the payment is handed to the
        seller, so a call re-entering from the seller's receipt handler finds
        the certificate no longer for sale. If the hand-off fails the ledger
        is restored and nothing is retained. The full payment, including
        anything above the asking price, goes to the seller.

        Args:
            token_id: Certificate ID
            buyer: Purchasing principal
            payment: Amount attached to the purchase

        Returns:
            The Purchased notification

        Raises:
            NotForSale: If the certificate is not listed
            InsufficientPayment: If payment is below the asking price
            PaymentFailed: If the seller could not be paid
        """
        with self._operation("buy_token", rollback=True):
            if payment < 0:
                raise InvalidAmount(f"Payment must not be negative, got {payment}", payment=payment)

            cert = self.state.certificates.get(token_id)
            is_for_sale, price = self.state.listings.is_listed(token_id)
            if not is_for_sale:
                raise NotForSale(f"Certificate {token_id} is not for sale", token_id=token_id)
            if payment < price:
                raise InsufficientPayment(
                    f"Payment of {payment} is below the asking price of {price}",
                    token_id=token_id,
                    payment=payment,
                    price=price,
                )

            seller = cert.owner
            listing = self.state.listings.clear(token_id)
            self.state.certificates.transfer_owner(token_id, seller, buyer)
            event = self.log.record(
                EventType.PURCHASED, buyer, cert, listing, seller=seller, payment=payment
            )

            # Last step: control may pass to the seller from here on
            try:
                paid = self.payments.send(buyer, seller, payment)
            except Exception as e:
                raise PaymentFailed(
                    f"Payment to {seller} for certificate {token_id} failed: {str(e)}",
                    token_id=token_id,
                ) from e
            if not paid:
                raise PaymentFailed(
                    f"Payment to {seller} for certificate {token_id} was not accepted",
                    token_id=token_id,
                )
            self._settled.append(PaymentReceipt(payer=buyer, recipient=seller, amount=payment))

        logger.info(
            f"Certificate {token_id} sold by {seller} to {buyer} "
            f"for {payment} {settings.CURRENCY_UNIT} (asking {price})"
        )
        return event

    def burn_token(self, token_id: int, caller: str) -> EnergyCertificate:
        """
        Retire a certificate held by a consumer. Retirement is terminal and
        also takes the certificate off sale.

        Raises:
            Unauthorized: If the caller is not a Consumer
            NotOwner: If the caller does not own the certificate
            AlreadyRetired: If the certificate is already retired
        """
        with self._operation("burn_token"):
            self.state.roles.check_role(caller, Role.CONSUMER)
            self.state.listings.check_owner(token_id, caller)
            self.state.certificates.retire(token_id)
            cert = self.state.certificates.get(token_id)
            listing = self.state.listings.clear(token_id)
            self.log.record(EventType.RETIRED, caller, cert, listing)

        logger.info(f"Certificate {token_id} retired by {caller}")
        return cert.model_copy(deep=True)

    # Read-only views

    def owner_of(self, token_id: int) -> str:
        with self._lock:
            return self.state.certificates.owner_of(token_id)

    def sale_status(self, token_id: int) -> Tuple[bool, int]:
        with self._lock:
            return self.state.listings.is_listed(token_id)

    def get_certificate(self, token_id: int) -> EnergyCertificate:
        with self._lock:
            return self.state.certificates.get(token_id).model_copy(deep=True)

    def get_listing(self, token_id: int) -> SaleListing:
        with self._lock:
            return self.state.listings.get(token_id).model_copy()

    def certificate_state(self, token_id: int) -> CertificateState:
        with self._lock:
            cert = self.state.certificates.get(token_id)
            if not cert.is_active:
                return CertificateState.RETIRED
            is_for_sale, _ = self.state.listings.is_listed(token_id)
        return CertificateState.ACTIVE_LISTED if is_for_sale else CertificateState.ACTIVE_UNLISTED

    def get_certificates_by_owner(self, owner: str) -> List[EnergyCertificate]:
        with self._lock:
            return [
                cert.model_copy(deep=True)
                for cert in self.state.certificates.get_certificates_by_owner(owner)
            ]

    def marketplace(self) -> List[Tuple[EnergyCertificate, SaleListing]]:
        """Every certificate currently for sale, with its listing"""
        with self._lock:
            return [
                (self.get_certificate(token_id), self.get_listing(token_id))
                for token_id in self.state.listings.listed_ids()
            ]


def build_engine(
    admin: Optional[str] = None,
    payments: Optional[PaymentGateway] = None,
) -> LifecycleEngine:
    """Bootstrap an engine with a fresh ledger whose Admin is the deployer"""
    state = LedgerState(admin=admin or settings.ADMIN_PRINCIPAL)
    return LifecycleEngine(state, payments or InMemoryPaymentGateway())
