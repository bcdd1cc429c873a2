"""
Credit Estimation API: estimate return credit for a batch of line items.

POST /api/returns/estimate-credit is the primary route; /api/credits/estimate
serves older clients with the same computation.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from pharmreturns.api.deps import get_catalog
from pharmreturns.errors import CreditServiceError
from pharmreturns.schemas.schemas import (
    BatchSummaryOut, EstimateRequest, EstimateResponse, LineItemResultOut, money,
)
from pharmreturns.services.batch_aggregator import (
    BatchSummary, LineItemError, LineItemResult, aggregate,
)
from pharmreturns.services.catalog import ProductCatalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["credits"])


def _result_out(index: int, result: LineItemResult) -> LineItemResultOut:
    if isinstance(result, LineItemError):
        return LineItemResultOut(
            index=index,
            status=result.status,
            ndc=result.ndc,
            quantity=result.quantity if type(result.quantity) is int else None,
            error=result.error,
            message=result.message,
        )

    return LineItemResultOut(
        index=index,
        status=result.status,
        ndc=result.ndc,
        product_name=result.product_name,
        manufacturer=result.manufacturer,
        strength=result.strength,
        dosage_form=result.dosage_form,
        quantity=result.quantity,
        lot_number=result.lot_number,
        expiration_date=result.expiration_date,
        condition=result.condition,
        unit_price=float(result.unit_price),
        credit_percentage=result.credit_percentage,
        estimated_credit=money(result.estimated_credit),
        eligible=result.eligible,
        days_to_expiration=result.days_to_expiration,
        return_window=result.return_window,
        dea_schedule=result.dea_schedule,
        requires_dea_form=result.requires_dea_form,
        requires_destruction=result.requires_destruction,
        ineligible_reason=result.ineligible_reason,
        expiration_warning=result.expiration_warning,
        error="Product not found" if not result.product_found else None,
    )


def _summary_out(summary: BatchSummary) -> BatchSummaryOut:
    return BatchSummaryOut(
        total_items=summary.total_items,
        eligible_items=summary.eligible_items,
        ineligible_items=summary.ineligible_items,
        total_estimated_credit=money(summary.total_estimated_credit),
        service_fees=money(summary.service_fees),
        transportation_fees=money(summary.transportation_fees),
        net_credit=money(summary.net_credit),
        has_dea_items=summary.has_dea_items,
    )


async def _estimate(body: EstimateRequest, catalog: ProductCatalog) -> EstimateResponse:
    try:
        batch = await aggregate(body.items, catalog)
    except CreditServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)

    if body.client_id:
        logger.info(
            "Credit estimate for client %s: %d items, net $%s",
            body.client_id,
            batch.summary.total_items,
            batch.summary.net_credit,
            extra={"client_id": body.client_id},
        )

    return EstimateResponse(
        items=[_result_out(i, r) for i, r in enumerate(batch.results)],
        summary=_summary_out(batch.summary),
    )


@router.post("/api/returns/estimate-credit", response_model=EstimateResponse)
async def estimate_return_credit(
    body: EstimateRequest,
    catalog: ProductCatalog = Depends(get_catalog),
) -> EstimateResponse:
    """
    Estimate credit for each returned line item and summarize the batch.

    A malformed or unknown line is reported in place and does not block the
    others. A missing or empty `items` list is rejected with 400.
    """
    return await _estimate(body, catalog)


@router.post("/api/credits/estimate", response_model=EstimateResponse)
async def estimate_credits(
    body: EstimateRequest,
    catalog: ProductCatalog = Depends(get_catalog),
) -> EstimateResponse:
    return await _estimate(body, catalog)
