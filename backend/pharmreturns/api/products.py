"""
Product catalog API: search the NDC directory and fetch single products.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from pharmreturns.api.deps import get_catalog
from pharmreturns.schemas.schemas import ProductListResponse, ProductOut
from pharmreturns.services.catalog import ProductCatalog
from pharmreturns.services.ndc import validate_ndc

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    q: str | None = Query(None, description="Name, manufacturer or NDC"),
    limit: int = Query(25, ge=1, le=200),
    catalog: ProductCatalog = Depends(get_catalog),
) -> ProductListResponse:
    records = await catalog.search(q, limit=limit)
    return ProductListResponse(
        total=len(records),
        items=[ProductOut.from_record(r) for r in records],
    )


@router.get("/{ndc}", response_model=ProductOut)
async def get_product(
    ndc: str,
    catalog: ProductCatalog = Depends(get_catalog),
) -> ProductOut:
    normalized, valid = validate_ndc(ndc)
    if not valid:
        raise HTTPException(
            status_code=400,
            detail="Invalid NDC format. Expected format: XXXXX-XXXX-XX",
        )
    record = await catalog.lookup(normalized)
    if record is None:
        raise HTTPException(status_code=404, detail=f"NDC {normalized} not found")
    return ProductOut.from_record(record)
