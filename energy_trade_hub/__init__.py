"""
Energy Trade Hub

A permissioned registry for tokenized energy-delivery certificates, with
role-gated creation, listing, purchase and retirement.
"""

from .events import NotificationLog
from .exceptions import (
    AlreadyRetired,
    EnergyTradeHubError,
    InsufficientPayment,
    InvalidAmount,
    InvalidWindow,
    NotForSale,
    NotFound,
    NotOwner,
    PaymentFailed,
    Unauthorized,
)
from .listings import SaleListingStore
from .models import (
    CertificateState,
    EnergyCertificate,
    EventType,
    LedgerEvent,
    Role,
    SaleListing,
)
from .payments import InMemoryPaymentGateway, PaymentGateway, PaymentReceipt
from .registry import CertificateStore, LedgerState
from .roles import RoleRegistry
from .trading import LifecycleEngine, build_engine

__version__ = "1.0.0"
__all__ = [
    "AlreadyRetired",
    "CertificateState",
    "CertificateStore",
    "EnergyCertificate",
    "EnergyTradeHubError",
    "EventType",
    "InMemoryPaymentGateway",
    "InsufficientPayment",
    "InvalidAmount",
    "InvalidWindow",
    "LedgerEvent",
    "LedgerState",
    "LifecycleEngine",
    "NotForSale",
    "NotFound",
    "NotOwner",
    "NotificationLog",
    "PaymentFailed",
    "PaymentGateway",
    "PaymentReceipt",
    "Role",
    "RoleRegistry",
    "SaleListing",
    "SaleListingStore",
    "Unauthorized",
    "build_engine",
]
