"""
Sale Listing Store

Keeps, per certificate, whether it is offered for sale and at what price.
"""

from typing import TYPE_CHECKING, Dict, List, Tuple

from .exceptions import InvalidAmount, NotOwner
from .models import SaleListing

if TYPE_CHECKING:
    from .registry import CertificateStore


class SaleListingStore:
    """Listing table keyed by certificate ID, entries created lazily"""

    def __init__(self, certificates: "CertificateStore"):
        self.certificates = certificates
        self.listings: Dict[int, SaleListing] = {}

    def get(self, token_id: int) -> SaleListing:
        """Get the listing for a known certificate; unlisted if none was ever made"""
        self.certificates.get(token_id)
        listing = self.listings.get(token_id)
        return listing if listing is not None else SaleListing(token_id=token_id)

    def _entry(self, token_id: int) -> SaleListing:
        self.certificates.get(token_id)
        return self.listings.setdefault(token_id, SaleListing(token_id=token_id))

    def check_owner(self, token_id: int, caller: str) -> None:
        owner = self.certificates.owner_of(token_id)
        if owner != caller:
            raise NotOwner(
                f"{caller} is not the owner of certificate {token_id}",
                token_id=token_id,
                caller=caller,
            )

    def list(self, token_id: int, price: int, caller: str) -> SaleListing:
        """
        Offer a certificate for sale.

        Args:
            token_id: Certificate ID
            price: Amount a buyer must pay
            caller: Principal listing the certificate, must be the owner

        Returns:
            The updated listing
        """
        self.check_owner(token_id, caller)
        if price < 0:
            raise InvalidAmount(f"Sale price must not be negative, got {price}", price=price)

        listing = self._entry(token_id)
        listing.is_for_sale = True
        listing.price = price
        return listing

    def withdraw(self, token_id: int, caller: str) -> SaleListing:
        """Take a certificate off sale. Withdrawing an unlisted certificate is a no-op."""
        self.check_owner(token_id, caller)
        return self.clear(token_id)

    def clear(self, token_id: int) -> SaleListing:
        listing = self._entry(token_id)
        listing.is_for_sale = False
        return listing

    def is_listed(self, token_id: int) -> Tuple[bool, int]:
        listing = self.get(token_id)
        return listing.is_for_sale, listing.price

    def snapshot(self) -> Dict[int, SaleListing]:
        return {token_id: listing.model_copy() for token_id, listing in self.listings.items()}

    def restore(self, snapshot: Dict[int, SaleListing]) -> None:
        self.listings = snapshot

    def listed_ids(self) -> List[int]:
        return sorted(
            token_id for token_id, listing in self.listings.items() if listing.is_for_sale
        )
