"""
Certificate Store and Ledger State

Manages registration, ownership and retirement of certificates.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

from .exceptions import AlreadyRetired, InvalidAmount, InvalidWindow, NotFound, NotOwner
from .listings import SaleListingStore
from .models import EnergyCertificate
from .roles import RoleRegistry


class CertificateStore:
    """Registry of every certificate ever created"""

    def __init__(self):
        """Initialize the store"""
        self.certificates: Dict[int, EnergyCertificate] = {}
        self.certificates_by_owner: Dict[str, Set[int]] = defaultdict(set)
        self.next_id: int = 1

    def create(
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
        Create a certificate owned by its issuer.

        Args:
            issuer: Creating principal, becomes the first owner
            amount: Energy quantity, must be positive
            price_per_unit: Informational unit price
            start_date: Start of the delivery window
            end_date: End of the delivery window, after start_date
            source_type: Energy source description
            delivery_point: Delivery location description
            terms_hash: Reference to the contract terms document
            metadata_ref: Opaque metadata reference

        Returns:
            The new certificate ID

        Raises:
            InvalidWindow: If start_date is not before end_date
            InvalidAmount: If amount or price_per_unit is out of range
        """
        if start_date >= end_date:
            raise InvalidWindow(
                f"Delivery window start {start_date} must be before end {end_date}",
                start_date=start_date,
                end_date=end_date,
            )
        if amount <= 0:
            raise InvalidAmount(f"Energy amount must be positive, got {amount}", amount=amount)
        if price_per_unit < 0:
            raise InvalidAmount(
                f"Price per unit must not be negative, got {price_per_unit}",
                price_per_unit=price_per_unit,
            )

        token_id = self.next_id
        cert = EnergyCertificate(
            token_id=token_id,
            issuer=issuer,
            owner=issuer,
            energy_amount=amount,
            price_per_unit=price_per_unit,
            start_date=start_date,
            end_date=end_date,
            source_type=source_type,
            delivery_point=delivery_point,
            contract_terms_hash=terms_hash,
            metadata_ref=metadata_ref,
        )

        self.certificates[token_id] = cert
        self.certificates_by_owner[issuer].add(token_id)
        self.next_id += 1

        return token_id

    def get(self, token_id: int) -> EnergyCertificate:
        """Get a certificate by ID, raising NotFound for unknown IDs"""
        cert = self.certificates.get(token_id)
        if cert is None:
            raise NotFound(f"Certificate {token_id} not found", token_id=token_id)
        return cert

    def exists(self, token_id: int) -> bool:
        return token_id in self.certificates

    def owner_of(self, token_id: int) -> str:
        return self.get(token_id).owner

    def transfer_owner(self, token_id: int, from_owner: str, to_owner: str) -> None:
        """
        Reassign ownership of a certificate.

        Raises:
            NotOwner: If from_owner is not the current owner
        """
        cert = self.get(token_id)
        if cert.owner != from_owner:
            raise NotOwner(
                f"Certificate {token_id} does not belong to {from_owner}, "
                f"current owner: {cert.owner}",
                token_id=token_id,
            )

        self.certificates_by_owner[from_owner].discard(token_id)
        cert.owner = to_owner
        self.certificates_by_owner[to_owner].add(token_id)

    def retire(self, token_id: int) -> None:
        """
        Deactivate a certificate. Retirement is terminal.

        Raises:
            AlreadyRetired: If the certificate is already inactive
        """
        cert = self.get(token_id)
        if not cert.is_active:
            raise AlreadyRetired(f"Certificate {token_id} is already retired", token_id=token_id)
        cert.is_active = False

    def snapshot(self) -> Tuple[Dict[int, EnergyCertificate], Dict[str, Set[int]], int]:
        """Deep copy of the mutable tables"""
        return (
            {cid: cert.model_copy(deep=True) for cid, cert in self.certificates.items()},
            {owner: set(ids) for owner, ids in self.certificates_by_owner.items()},
            self.next_id,
        )

    def restore(self, snapshot: Tuple[Dict[int, EnergyCertificate], Dict[str, Set[int]], int]) -> None:
        certificates, by_owner, next_id = snapshot
        self.certificates = certificates
        self.certificates_by_owner = defaultdict(set, by_owner)
        self.next_id = next_id

    def get_certificates_by_owner(self, owner: str) -> List[EnergyCertificate]:
        """Get all certificates held by an owner, in ID order"""
        cert_ids = sorted(self.certificates_by_owner.get(owner, set()))
        return [self.certificates[cid] for cid in cert_ids]

    def all(self) -> List[EnergyCertificate]:
        return [self.certificates[cid] for cid in sorted(self.certificates)]


class LedgerState:
    """
    Explicit store object owning the certificate, listing and role tables.

    Handed to the lifecycle engine by reference so that the whole ledger can
    be swapped (or inspected in tests) without module level globals.
    """

    def __init__(self, admin: Optional[str] = None):
        self.roles = RoleRegistry(admin=admin)
        self.certificates = CertificateStore()
        self.listings = SaleListingStore(self.certificates)

    def snapshot(self) -> Tuple[Any, Any, Any]:
        """Copy every table so a failed operation can be undone in full"""
        return (
            self.certificates.snapshot(),
            self.listings.snapshot(),
            self.roles.snapshot(),
        )

    def restore(self, snapshot: Tuple[Any, Any, Any]) -> None:
        certificates, listings, roles = snapshot
        self.certificates.restore(certificates)
        self.listings.restore(listings)
        self.roles.restore(roles)
