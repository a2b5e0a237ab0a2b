"""
Data models for the Energy Trade Hub
"""

import datetime
from enum import Enum
from functools import partial
from typing import Optional

from pydantic import BaseModel, Field

utc_datetime_now = partial(datetime.datetime.now, datetime.timezone.utc)


class Role(str, Enum):
    """Capability grants held by principals"""
    ADMIN = "admin"
    PROVIDER = "provider"
    CONSUMER = "consumer"

    def __str__(self):
        return self.value


class EventType(str, Enum):
    """Lifecycle transitions recorded in the notification log"""
    CREATED = "Created"
    LISTED = "Listed"
    WITHDRAWN = "Withdrawn"
    PURCHASED = "Purchased"
    RETIRED = "Retired"


class CertificateState(str, Enum):
    ACTIVE_UNLISTED = "Active-Unlisted"
    ACTIVE_LISTED = "Active-Listed"
    RETIRED = "Retired"


class EnergyCertificate(BaseModel):
    """Tokenized energy-delivery certificate"""
    token_id: int = Field(..., ge=1, description="Monotonically assigned certificate ID")
    issuer: str = Field(..., description="Provider that created the certificate")
    owner: str = Field(..., description="Current holder")
    energy_amount: int = Field(..., gt=0, description="Promised energy quantity")
    price_per_unit: int = Field(..., ge=0, description="Informational unit price set at creation")
    start_date: int = Field(..., description="Start of the delivery window")
    end_date: int = Field(..., description="End of the delivery window")
    source_type: str = Field(..., description="Energy source, e.g. solar or wind")
    delivery_point: str = Field(..., description="Grid location the energy is delivered to")
    is_active: bool = Field(default=True, description="False once the certificate is retired")
    contract_terms_hash: str = Field(..., description="Reference to the off-record contract terms")
    metadata_ref: str = Field(default="", description="Opaque metadata reference (token URI)")
    created_at: datetime.datetime = Field(default_factory=utc_datetime_now)


class SaleListing(BaseModel):
    """For-sale status of a single certificate"""
    token_id: int
    is_for_sale: bool = False
    price: int = 0


class LedgerEvent(BaseModel):
    """A single externally observable state transition"""
    sequence: int = Field(..., ge=1, description="Position in the append-only log")
    event_type: EventType
    token_id: int
    actor: str = Field(..., description="Principal whose call caused the transition")
    certificate: EnergyCertificate
    listing: SaleListing
    seller: Optional[str] = None
    payment: Optional[int] = None
    timestamp: datetime.datetime = Field(default_factory=utc_datetime_now)
