"""
Subscription plan prices for display.

Prices are kept in minor units (paise for INR, cents for USD) so no float
arithmetic touches money. Formatting follows each currency's local
convention: ``$17`` for USD and Indian digit grouping (``₹10,00,000``)
for INR.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from decible.services.geo import Currency


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    credits: int
    inr_paise: int
    usd_cents: int
    first_month_inr_paise: Optional[int] = None
    first_month_usd_cents: Optional[int] = None

    def price(self, currency: Currency) -> int:
        return self.inr_paise if currency is Currency.INR else self.usd_cents

    def first_month_price(self, currency: Currency) -> Optional[int]:
        return self.first_month_inr_paise if currency is Currency.INR else self.first_month_usd_cents


PLANS: Tuple[Plan, ...] = (
    Plan("free", "Free", 5_000, 0, 0),
    Plan("starter", "Starter", 35_000, 39_500, 500),
    Plan("creator", "Creator", 150_000, 139_500, 1_700, first_month_inr_paise=79_500, first_month_usd_cents=1_000),
    Plan("pro", "Pro", 500_000, 219_500, 2_700),
    Plan("advanced", "Advanced", 1_000_000, 349_500, 4_200),
)

_SYMBOLS = {Currency.INR: "₹", Currency.USD: "$"}


def get_plan(plan_id: str) -> Optional[Plan]:
    for plan in PLANS:
        if plan.id == plan_id:
            return plan
    return None


def plan_price(plan_id: str, currency: Currency) -> int:
    """
    Monthly price of ``plan_id`` in minor units of ``currency``.

    Raises:
        KeyError: Unknown plan id.
    """
    plan = get_plan(plan_id)
    if plan is None:
        raise KeyError(plan_id)
    return plan.price(currency)


def _group_indian(whole: int) -> str:
    digits = str(whole)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_price(minor_units: int, currency: Currency) -> str:
    """
    Format a price given in minor units.

    Whole amounts drop the fraction: ``format_price(139500, INR) == "₹1,395"``.
    """
    whole, fraction = divmod(abs(int(minor_units)), 100)
    grouped = _group_indian(whole) if currency is Currency.INR else f"{whole:,}"
    text = f"{_SYMBOLS[currency]}{grouped}"
    if fraction:
        text += f".{fraction:02d}"
    return f"-{text}" if minor_units < 0 else text


def pricing_for(currency: Currency) -> List[Dict[str, Any]]:
    """Display table of every plan in ``currency``."""
    rows = []
    for plan in PLANS:
        price = plan.price(currency)
        first = plan.first_month_price(currency)
        rows.append({
            "id": plan.id,
            "name": plan.name,
            "credits": plan.credits,
            "price": price,
            "formattedPrice": format_price(price, currency),
            "firstMonthPrice": first,
            "formattedFirstMonthPrice": format_price(first, currency) if first is not None else None,
        })
    return rows
