"""
Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel

from pharmreturns.services.catalog import ProductRecord
from pharmreturns.services.credit_estimator import Condition

CENTS = Decimal("0.01")


def money(value: Decimal) -> float:
    """Round a currency amount to cents for output."""
    return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Line items ──

class ReturnLineItem(CamelModel):
    ndc: str = Field(min_length=1)
    quantity: StrictInt = Field(gt=0)
    expiration_date: date
    lot_number: str | None = None
    condition: Condition = Condition.UNOPENED

    @field_validator("condition", mode="before")
    @classmethod
    def _upper_condition(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


class EstimateRequest(CamelModel):
    # Untyped: the aggregator reports a missing or non-list value as 400
    items: Any = None
    client_id: str | None = None


class LineItemResultOut(CamelModel):
    index: int
    status: str                      # estimated | not_found | invalid
    ndc: str | None = None
    product_name: str | None = None
    manufacturer: str | None = None
    strength: str | None = None
    dosage_form: str | None = None
    quantity: int | None = None
    lot_number: str | None = None
    expiration_date: date | None = None
    condition: Condition | None = None
    unit_price: float = 0.0
    credit_percentage: int = 0
    estimated_credit: float = 0.0
    eligible: bool = False
    days_to_expiration: int | None = None
    return_window: int | None = None
    dea_schedule: str | None = None
    requires_dea_form: bool = Field(False, alias="requiresDEAForm")
    requires_destruction: bool = False
    ineligible_reason: str | None = None
    expiration_warning: str | None = None
    error: str | None = None
    message: str | None = None


class BatchSummaryOut(CamelModel):
    total_items: int
    eligible_items: int
    ineligible_items: int
    total_estimated_credit: float
    service_fees: float
    transportation_fees: float
    net_credit: float
    has_dea_items: bool = Field(alias="hasDEAItems")


class EstimateResponse(CamelModel):
    items: list[LineItemResultOut]
    summary: BatchSummaryOut


# ── Products / NDC ──

class EligibilityPolicyOut(CamelModel):
    eligible: bool
    return_window: int
    credit_percentage: int
    requires_dea_form: bool = Field(alias="requiresDEAForm")
    destruction_required: bool


class ProductOut(CamelModel):
    ndc: str
    proprietary_name: str | None = None
    non_proprietary_name: str
    manufacturer_name: str
    strength: str
    dosage_form: str
    wac: float
    dea_schedule: str | None = None
    return_eligibility: EligibilityPolicyOut

    @classmethod
    def from_record(cls, record: ProductRecord) -> "ProductOut":
        policy = record.return_eligibility
        return cls(
            ndc=record.ndc,
            proprietary_name=record.proprietary_name,
            non_proprietary_name=record.non_proprietary_name,
            manufacturer_name=record.manufacturer_name,
            strength=record.strength,
            dosage_form=record.dosage_form,
            wac=float(record.wac),
            dea_schedule=record.dea_schedule,
            return_eligibility=EligibilityPolicyOut(
                eligible=policy.eligible,
                return_window=policy.return_window,
                credit_percentage=policy.credit_percentage,
                requires_dea_form=policy.requires_dea_form,
                destruction_required=policy.destruction_required,
            ),
        )


class NDCValidateRequest(BaseModel):
    ndc: str | None = None


class NDCValidateResponse(BaseModel):
    valid: bool
    ndc: str
    product: ProductOut


class ProductListResponse(BaseModel):
    total: int
    items: list[ProductOut]
