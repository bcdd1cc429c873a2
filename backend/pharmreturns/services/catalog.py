"""
Product catalog lookup.

The estimator only needs `ProductCatalog.lookup()`; which store answers it is
a deployment choice. Two implementations ship here:

  InMemoryCatalog  - the bundled static table (default)
  DatabaseCatalog  - the `ndc_products` table through an AsyncSession
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from pharmreturns.models import NDCProduct
from pharmreturns.services.ndc import validate_ndc

logger = logging.getLogger(__name__)

DEA_SCHEDULES = {"CI", "CII", "CIII", "CIV", "CV"}


@dataclass(frozen=True)
class EligibilityPolicy:
    """Return terms a distributor grants for a product."""
    eligible: bool
    return_window: int              # days
    credit_percentage: int          # 0 - 100, base rate
    requires_dea_form: bool = False
    destruction_required: bool = False

    def __post_init__(self):
        if not 0 <= self.credit_percentage <= 100:
            raise ValueError(f"credit_percentage must be in [0, 100], got {self.credit_percentage}")
        if self.return_window < 0:
            raise ValueError(f"return_window must be >= 0, got {self.return_window}")


@dataclass(frozen=True)
class ProductRecord:
    ndc: str
    non_proprietary_name: str
    manufacturer_name: str
    strength: str
    dosage_form: str
    wac: Decimal
    return_eligibility: EligibilityPolicy
    proprietary_name: str | None = None
    dea_schedule: str | None = None

    def __post_init__(self):
        if self.dea_schedule is not None and self.dea_schedule not in DEA_SCHEDULES:
            raise ValueError(f"Unknown DEA schedule: {self.dea_schedule}")
        if not self.wac.is_finite() or self.wac < 0:
            raise ValueError(f"wac must be a finite, non-negative amount, got {self.wac}")

    @property
    def display_name(self) -> str:
        return self.proprietary_name or self.non_proprietary_name


def record_from_mapping(row: Mapping) -> ProductRecord:
    """Build a ProductRecord from a flat seed/DB-shaped mapping."""
    return ProductRecord(
        ndc=row["ndc"],
        proprietary_name=row.get("proprietary_name"),
        non_proprietary_name=row.get("nonproprietary_name") or "",
        manufacturer_name=row.get("manufacturer_name") or "",
        strength=row.get("strength") or "",
        dosage_form=row.get("dosage_form") or "",
        wac=Decimal(str(row.get("wac") or "0")),
        dea_schedule=row.get("dea_schedule"),
        return_eligibility=EligibilityPolicy(
            eligible=bool(row.get("return_eligible", True)),
            return_window=int(row.get("return_window", 180)),
            credit_percentage=int(row.get("credit_percentage", 0)),
            requires_dea_form=bool(row.get("requires_dea_form", False)),
            destruction_required=bool(row.get("destruction_required", False)),
        ),
    )


def record_from_model(product: NDCProduct) -> ProductRecord:
    return record_from_mapping({
        "ndc": product.ndc,
        "proprietary_name": product.proprietary_name,
        "nonproprietary_name": product.nonproprietary_name,
        "manufacturer_name": product.manufacturer_name,
        "strength": product.strength,
        "dosage_form": product.dosage_form,
        "wac": product.wac,
        "dea_schedule": product.dea_schedule,
        "return_eligible": product.return_eligible,
        "return_window": product.return_window,
        "credit_percentage": product.credit_percentage,
        "requires_dea_form": product.requires_dea_form,
        "destruction_required": product.destruction_required,
    })


class ProductCatalog(ABC):
    """Read-only product lookup keyed by normalized NDC."""

    backend: str = "abstract"

    @abstractmethod
    async def lookup(self, ndc: str) -> ProductRecord | None: ...

    @abstractmethod
    async def search(self, query: str | None = None, limit: int = 25) -> list[ProductRecord]: ...

    @abstractmethod
    async def count(self) -> int: ...


class InMemoryCatalog(ProductCatalog):
    backend = "memory"

    def __init__(self, records: Iterable[ProductRecord]):
        self._records: dict[str, ProductRecord] = {}
        for record in records:
            normalized, valid = validate_ndc(record.ndc)
            if not valid:
                raise ValueError(f"Catalog record has malformed NDC: {record.ndc!r}")
            self._records[normalized] = record

    @classmethod
    def from_seed(cls) -> InMemoryCatalog:
        from pharmreturns.seed.catalog_data import NDC_PRODUCTS
        return cls(record_from_mapping(row) for row in NDC_PRODUCTS)

    async def lookup(self, ndc: str) -> ProductRecord | None:
        normalized, valid = validate_ndc(ndc)
        if not valid:
            return None
        return self._records.get(normalized)

    async def search(self, query: str | None = None, limit: int = 25) -> list[ProductRecord]:
        records = list(self._records.values())
        if query:
            needle = query.strip().lower()
            normalized, valid = validate_ndc(query)
            records = [
                r for r in records
                if (valid and r.ndc == normalized)
                or needle in (r.proprietary_name or "").lower()
                or needle in r.non_proprietary_name.lower()
                or needle in r.manufacturer_name.lower()
            ]
        records.sort(key=lambda r: r.display_name.lower())
        return records[:limit]

    async def count(self) -> int:
        return len(self._records)


class DatabaseCatalog(ProductCatalog):
    backend = "database"

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lookup(self, ndc: str) -> ProductRecord | None:
        normalized, valid = validate_ndc(ndc)
        if not valid:
            return None
        result = await self.session.execute(
            select(NDCProduct).where(NDCProduct.ndc == normalized)
        )
        product = result.scalar_one_or_none()
        if product is None:
            logger.debug("NDC %s not in ndc_products", normalized)
            return None
        return record_from_model(product)

    async def search(self, query: str | None = None, limit: int = 25) -> list[ProductRecord]:
        stmt = select(NDCProduct)
        if query:
            pattern = f"%{query.strip().lower()}%"
            clauses = [
                func.lower(NDCProduct.proprietary_name).like(pattern),
                func.lower(NDCProduct.nonproprietary_name).like(pattern),
                func.lower(NDCProduct.manufacturer_name).like(pattern),
            ]
            normalized, valid = validate_ndc(query)
            if valid:
                clauses.append(NDCProduct.ndc == normalized)
            stmt = stmt.where(or_(*clauses))
        stmt = stmt.order_by(
            func.lower(func.coalesce(NDCProduct.proprietary_name, NDCProduct.nonproprietary_name))
        ).limit(limit)
        result = await self.session.execute(stmt)
        return [record_from_model(p) for p in result.scalars()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(NDCProduct))
        return result.scalar() or 0
