"""
NDC Validation API: normalize an NDC, check its format, look it up.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from pharmreturns.api.deps import get_catalog
from pharmreturns.schemas.schemas import NDCValidateRequest, NDCValidateResponse, ProductOut
from pharmreturns.services.catalog import ProductCatalog
from pharmreturns.services.ndc import validate_ndc

router = APIRouter(prefix="/api/ndc", tags=["ndc"])

NOT_FOUND_SUGGESTION = (
    "This NDC may not be in our database. Please verify the code or contact support."
)


async def _validate(raw: str | None, catalog: ProductCatalog) -> NDCValidateResponse | JSONResponse:
    if not raw:
        raise HTTPException(status_code=400, detail="NDC is required")

    normalized, valid = validate_ndc(raw)
    if not valid:
        raise HTTPException(
            status_code=400,
            detail="Invalid NDC format. Expected format: XXXXX-XXXX-XX",
        )

    product = await catalog.lookup(normalized)
    if product is None:
        return JSONResponse(
            status_code=404,
            content={
                "detail": "NDC not found in database",
                "ndc": normalized,
                "suggestion": NOT_FOUND_SUGGESTION,
            },
        )

    return NDCValidateResponse(valid=True, ndc=normalized, product=ProductOut.from_record(product))


@router.post("/validate", response_model=NDCValidateResponse)
async def validate_ndc_body(
    body: NDCValidateRequest,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Normalize and validate an NDC from the request body."""
    return await _validate(body.ndc, catalog)


@router.get("/validate", response_model=NDCValidateResponse)
async def validate_ndc_query(
    ndc: str | None = Query(None),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Same as POST, for quick lookups from a barcode scan or link."""
    return await _validate(ndc, catalog)
