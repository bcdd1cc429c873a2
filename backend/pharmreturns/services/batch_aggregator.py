"""
Batch Credit Aggregator

Runs the credit estimator over every line item of a return request and rolls
the results up into a summary with fees and net credit.

Each item is handled on its own: a malformed line becomes a LineItemError in
the same position, an unknown NDC becomes a zero-credit not-found estimate,
and neither stops the rest of the batch. Only an empty request or an
unexpected estimator fault aborts.

Fees (defaults, configurable through Settings):
  service_fees        = clamp(total × 3%, 25, 500)
  transportation_fees = 15 + 0.50 × item_count
  net_credit          = total − service_fees − transportation_fees   (may be < 0)
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from pharmreturns.config import settings
from pharmreturns.errors import EmptyBatchError, EstimationError
from pharmreturns.middleware.metrics import record_batch
from pharmreturns.schemas.schemas import ReturnLineItem
from pharmreturns.services.catalog import ProductCatalog
from pharmreturns.services.credit_estimator import (
    CreditEstimate, estimate_credit, not_found_estimate,
)
from pharmreturns.services.ndc import validate_ndc

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

ERROR_INVALID_NDC = "invalid_ndc"
ERROR_INVALID_QUANTITY = "invalid_quantity"
ERROR_MISSING_FIELD = "missing_field"
ERROR_INVALID_ITEM = "invalid_item"


@dataclass(frozen=True)
class LineItemError:
    """A line item that could not be estimated. Always zero credit."""
    index: int
    error: str
    message: str
    ndc: str | None = None
    quantity: Any = None

    status = "invalid"
    eligible = False
    estimated_credit = Decimal("0")
    requires_dea_form = False


LineItemResult = CreditEstimate | LineItemError


@dataclass(frozen=True)
class FeeSchedule:
    service_fee_rate: Decimal = Decimal("0.03")
    service_fee_min: Decimal = Decimal("25")
    service_fee_max: Decimal = Decimal("500")
    transport_base_fee: Decimal = Decimal("15")
    transport_per_item_fee: Decimal = Decimal("0.50")

    @classmethod
    def from_settings(cls) -> "FeeSchedule":
        return cls(
            service_fee_rate=settings.service_fee_rate,
            service_fee_min=settings.service_fee_min,
            service_fee_max=settings.service_fee_max,
            transport_base_fee=settings.transport_base_fee,
            transport_per_item_fee=settings.transport_per_item_fee,
        )


@dataclass(frozen=True)
class BatchSummary:
    total_items: int
    eligible_items: int
    ineligible_items: int
    total_estimated_credit: Decimal
    service_fees: Decimal
    transportation_fees: Decimal
    net_credit: Decimal
    has_dea_items: bool


@dataclass
class BatchEstimate:
    results: list[LineItemResult] = field(default_factory=list)
    summary: BatchSummary | None = None


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_service_fees(total_credit: Decimal, fees: FeeSchedule | None = None) -> Decimal:
    """Percentage commission with a floor and a ceiling."""
    fees = fees or FeeSchedule()
    calculated = total_credit * fees.service_fee_rate
    return _cents(min(max(calculated, fees.service_fee_min), fees.service_fee_max))


def calculate_transportation_fees(item_count: int, fees: FeeSchedule | None = None) -> Decimal:
    """Base shipping fee plus per-item handling."""
    fees = fees or FeeSchedule()
    return _cents(fees.transport_base_fee + fees.transport_per_item_fee * item_count)


def summarize(
    results: Sequence[LineItemResult],
    item_count: int | None = None,
    fees: FeeSchedule | None = None,
) -> BatchSummary:
    """Roll per-item results up into totals, fees and net credit."""
    item_count = len(results) if item_count is None else item_count
    eligible = [r for r in results if r.eligible]

    total = sum((_cents(r.estimated_credit) for r in eligible), Decimal("0.00"))
    service_fees = calculate_service_fees(total, fees)
    transportation_fees = calculate_transportation_fees(item_count, fees)

    return BatchSummary(
        total_items=item_count,
        eligible_items=len(eligible),
        ineligible_items=item_count - len(eligible),
        total_estimated_credit=total,
        service_fees=service_fees,
        transportation_fees=transportation_fees,
        net_credit=total - service_fees - transportation_fees,
        has_dea_items=any(r.requires_dea_form for r in results),
    )


def _classify_validation_error(exc: ValidationError) -> tuple[str, str]:
    """Map the first pydantic error onto a line-item error code."""
    first = exc.errors()[0]
    loc = first.get("loc") or ()
    field_name = str(loc[0]) if loc else ""

    if first.get("type") == "missing":
        return ERROR_MISSING_FIELD, f"{field_name} is required"
    if field_name == "quantity":
        return ERROR_INVALID_QUANTITY, "quantity must be a positive integer"
    if field_name == "ndc":
        return ERROR_INVALID_NDC, "ndc must be a non-empty string"
    if field_name:
        return ERROR_INVALID_ITEM, f"{field_name}: {first.get('msg')}"
    return ERROR_INVALID_ITEM, str(first.get("msg"))


def parse_line_item(index: int, raw: Any) -> ReturnLineItem | LineItemError:
    """Validate one raw request item, reporting failures as a value."""
    if not isinstance(raw, Mapping):
        return LineItemError(
            index=index,
            error=ERROR_INVALID_ITEM,
            message="Line item must be an object",
        )

    try:
        item = ReturnLineItem.model_validate(raw)
    except ValidationError as exc:
        code, message = _classify_validation_error(exc)
        return LineItemError(
            index=index,
            error=code,
            message=message,
            ndc=raw.get("ndc") if isinstance(raw.get("ndc"), str) else None,
            quantity=raw.get("quantity"),
        )

    normalized, valid = validate_ndc(item.ndc)
    if not valid:
        return LineItemError(
            index=index,
            error=ERROR_INVALID_NDC,
            message="Invalid NDC format. Expected format: XXXXX-XXXX-XX",
            ndc=item.ndc,
            quantity=item.quantity,
        )

    return item.model_copy(update={"ndc": normalized})


async def estimate_line_item(
    index: int,
    raw: Any,
    catalog: ProductCatalog,
    today: date,
) -> LineItemResult:
    parsed = parse_line_item(index, raw)
    if isinstance(parsed, LineItemError):
        logger.debug("Line %d rejected: %s (%s)", index, parsed.error, parsed.message)
        return parsed

    try:
        product = await catalog.lookup(parsed.ndc)
        if product is None:
            logger.info("Line %d: NDC %s not found in catalog", index, parsed.ndc)
            return not_found_estimate(
                parsed.ndc,
                parsed.quantity,
                parsed.condition,
                parsed.lot_number,
                parsed.expiration_date,
            )
        return estimate_credit(
            product,
            parsed.quantity,
            parsed.expiration_date,
            parsed.condition,
            today=today,
            lot_number=parsed.lot_number,
        )
    except Exception as exc:
        logger.exception("Credit estimation failed on line %d (NDC %s)", index, parsed.ndc)
        raise EstimationError() from exc


async def aggregate(
    items: Any,
    catalog: ProductCatalog,
    today: date | None = None,
    fees: FeeSchedule | None = None,
) -> BatchEstimate:
    """
    Estimate every line item and summarize the batch.

    Args:
        items: Raw line items as decoded from the request body
        catalog: Product lookup used for each NDC
        today: Reference date for days-to-expiration, defaults to date.today()
        fees: Fee schedule, defaults to the configured one

    Raises:
        EmptyBatchError: items is missing, not a list, or empty
        EstimationError: an unexpected fault while estimating a line
    """
    if not isinstance(items, list) or not items:
        raise EmptyBatchError()

    today = today or date.today()
    fees = fees or FeeSchedule.from_settings()

    results: list[LineItemResult] = []
    for index, raw in enumerate(items):
        result = await estimate_line_item(index, raw, catalog, today)
        results.append(result)

    summary = summarize(results, len(items), fees)

    record_batch((r.status for r in results), summary.total_estimated_credit)
    logger.info(
        "Estimated %d line items: %d eligible, total $%s, net $%s",
        summary.total_items,
        summary.eligible_items,
        summary.total_estimated_credit,
        summary.net_credit,
        extra={
            "batch_size": summary.total_items,
            "total_credit": summary.total_estimated_credit,
            "net_credit": summary.net_credit,
        },
    )
    if summary.net_credit < 0:
        logger.warning("Batch net credit is negative ($%s)", summary.net_credit)

    return BatchEstimate(results=results, summary=summary)
