"""
Registry reporting

Tabular views and summary statistics over the ledger.
"""

from typing import Any, Dict

import pandas as pd

from .events import NotificationLog
from .models import EventType
from .registry import LedgerState

CERTIFICATE_COLUMNS = [
    "token_id",
    "issuer",
    "owner",
    "energy_amount",
    "price_per_unit",
    "start_date",
    "end_date",
    "source_type",
    "delivery_point",
    "is_active",
    "is_for_sale",
    "price",
]


def certificates_frame(state: LedgerState) -> pd.DataFrame:
    """Build a DataFrame of every certificate joined with its listing status.

    Args:
        state (LedgerState): The ledger to report on

    Returns:
        pd.DataFrame: One row per certificate, ordered by token ID
    """
    rows = []
    for cert in state.certificates.all():
        listing = state.listings.get(cert.token_id)
        row = cert.model_dump(include=set(CERTIFICATE_COLUMNS))
        row["is_for_sale"] = listing.is_for_sale
        row["price"] = listing.price if listing.is_for_sale else None
        rows.append(row)

    return pd.DataFrame(rows, columns=CERTIFICATE_COLUMNS)


def registry_statistics(state: LedgerState, log: NotificationLog) -> Dict[str, Any]:
    """Summarise the ledger for the statistics endpoint"""
    df = certificates_frame(state)
    purchases = log.of_type(EventType.PURCHASED)

    if df.empty:
        energy_by_source: Dict[str, int] = {}
        active_energy = retired_energy = 0
    else:
        active = df[df["is_active"]]
        energy_by_source = {
            str(source): int(total)
            for source, total in df.groupby("source_type")["energy_amount"].sum().items()
        }
        active_energy = int(active["energy_amount"].sum())
        retired_energy = int(df.loc[~df["is_active"], "energy_amount"].sum())

    return {
        "total_certificates": int(len(df)),
        "active_certificates": int(df["is_active"].sum()) if not df.empty else 0,
        "retired_certificates": int((~df["is_active"]).sum()) if not df.empty else 0,
        "listed_certificates": int(df["is_for_sale"].sum()) if not df.empty else 0,
        "active_energy": active_energy,
        "retired_energy": retired_energy,
        "energy_by_source": energy_by_source,
        "total_purchases": len(purchases),
        "total_traded_value": sum(event.payment or 0 for event in purchases),
        "total_owners": int(df["owner"].nunique()) if not df.empty else 0,
    }
