"""
Return Credit Estimator

Pure calculation: given a catalog product, a quantity, an expiration date and
the item's condition, decide return eligibility and estimate the credit.

Algorithm:
  days  = expiration_date - today (whole days)
  days < 0 or days > return_window          → ineligible, 0%
  effective % = round(base% × tier(days) × condition)
  estimated credit = WAC × quantity × effective% / 100

Eligibility is the window check alone; an eligible item can still round to 0%.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from pharmreturns.services.catalog import ProductRecord


class Condition(str, Enum):
    UNOPENED = "UNOPENED"
    OPENED = "OPENED"
    DAMAGED = "DAMAGED"


# (max days to expiration, multiplier), ascending; beyond the last tier → 1.00
EXPIRATION_TIERS: list[tuple[int, Decimal]] = [
    (30, Decimal("0.25")),
    (90, Decimal("0.50")),
    (180, Decimal("0.85")),
]

CONDITION_MULTIPLIERS: dict[Condition, Decimal] = {
    Condition.UNOPENED: Decimal("1.00"),
    Condition.OPENED: Decimal("0.70"),
    Condition.DAMAGED: Decimal("0.30"),
}

REASON_EXPIRED = "expired"
REASON_OUTSIDE_WINDOW = "outside_return_window"
REASON_NOT_FOUND = "product_not_found"


@dataclass(frozen=True)
class CreditEstimate:
    """Estimated credit for one returned line item."""
    ndc: str | None
    quantity: int
    condition: Condition
    product_name: str | None = None
    manufacturer: str | None = None
    strength: str | None = None
    dosage_form: str | None = None
    unit_price: Decimal = Decimal("0")
    credit_percentage: int = 0
    estimated_credit: Decimal = Decimal("0")
    eligible: bool = False
    days_to_expiration: int | None = None
    return_window: int | None = None
    dea_schedule: str | None = None
    requires_dea_form: bool = False
    requires_destruction: bool = False
    lot_number: str | None = None
    expiration_date: date | None = None
    ineligible_reason: str | None = None
    expiration_warning: str | None = None
    product_found: bool = True

    @property
    def status(self) -> str:
        return "estimated" if self.product_found else "not_found"


def days_to_expiration(expiration_date: date, today: date | None = None) -> int:
    """Whole days from *today* until *expiration_date* (negative once expired)."""
    today = today or date.today()
    return (expiration_date - today).days


def tier_multiplier(days: int) -> Decimal:
    """Closer to expiration → smaller share of the base credit."""
    for max_days, multiplier in EXPIRATION_TIERS:
        if days <= max_days:
            return multiplier
    return Decimal("1.00")


def condition_multiplier(condition: Condition | str) -> Decimal:
    return CONDITION_MULTIPLIERS[Condition(condition)]


def effective_credit_percentage(
    base_percentage: int,
    days: int,
    return_window: int,
    condition: Condition | str,
) -> int:
    """Credit percentage after expiration tier and condition adjustments."""
    if days < 0 or days > return_window:
        return 0
    raw = Decimal(base_percentage) * tier_multiplier(days) * condition_multiplier(condition)
    pct = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return min(max(pct, 0), 100)


def _expiration_warning(days: int, return_window: int) -> str:
    if days < 0:
        return "Product has expired"
    if days > return_window:
        return f"Expires in {days} days (outside {return_window}-day return window)"
    return f"Expires in {days} days (within return window)"


def not_found_estimate(
    ndc: str | None,
    quantity: int,
    condition: Condition | str = Condition.UNOPENED,
    lot_number: str | None = None,
    expiration_date: date | None = None,
) -> CreditEstimate:
    return CreditEstimate(
        ndc=ndc,
        quantity=quantity,
        condition=Condition(condition),
        lot_number=lot_number,
        expiration_date=expiration_date,
        ineligible_reason=REASON_NOT_FOUND,
        product_found=False,
    )


def estimate_credit(
    product: ProductRecord | None,
    quantity: int,
    expiration_date: date,
    condition: Condition | str = Condition.UNOPENED,
    today: date | None = None,
    ndc: str | None = None,
    lot_number: str | None = None,
) -> CreditEstimate:
    """
    Estimate the return credit for a single line item.

    Args:
        product: Catalog record, or None when the NDC was not found
        quantity: Units returned, positive integer
        expiration_date: Lot expiration date
        condition: UNOPENED / OPENED / DAMAGED
        today: Reference date, defaults to date.today()

    Returns:
        CreditEstimate; a missing product yields a zero-credit, ineligible
        estimate with product_found=False instead of an error.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")

    condition = Condition(condition)

    if product is None:
        return not_found_estimate(ndc, quantity, condition, lot_number, expiration_date)

    policy = product.return_eligibility
    days = days_to_expiration(expiration_date, today)
    eligible = 0 <= days <= policy.return_window

    reason = None
    if days < 0:
        reason = REASON_EXPIRED
    elif days > policy.return_window:
        reason = REASON_OUTSIDE_WINDOW

    pct = effective_credit_percentage(
        policy.credit_percentage, days, policy.return_window, condition
    )
    estimated = product.wac * quantity * Decimal(pct) / Decimal(100)

    return CreditEstimate(
        ndc=product.ndc,
        quantity=quantity,
        condition=condition,
        product_name=product.display_name,
        manufacturer=product.manufacturer_name,
        strength=product.strength,
        dosage_form=product.dosage_form,
        unit_price=product.wac,
        credit_percentage=pct,
        estimated_credit=estimated,
        eligible=eligible,
        days_to_expiration=days,
        return_window=policy.return_window,
        dea_schedule=product.dea_schedule,
        requires_dea_form=policy.requires_dea_form or product.dea_schedule == "CII",
        requires_destruction=policy.destruction_required,
        lot_number=lot_number,
        expiration_date=expiration_date,
        ineligible_reason=reason,
        expiration_warning=_expiration_warning(days, policy.return_window),
    )
