from decimal import Decimal

from sqlalchemy import String, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from pharmreturns.database import Base


class NDCProduct(Base):
    """NDC product directory with return-credit policy columns"""
    __tablename__ = "ndc_products"

    id: Mapped[int] = mapped_column(primary_key=True)
    ndc: Mapped[str] = mapped_column(String(13), unique=True, index=True)
    proprietary_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    nonproprietary_name: Mapped[str] = mapped_column(String(255), default="")
    manufacturer_name: Mapped[str] = mapped_column(String(200), default="")
    strength: Mapped[str] = mapped_column(String(100), default="")
    dosage_form: Mapped[str] = mapped_column(String(100), default="")
    dea_schedule: Mapped[str | None] = mapped_column(String(5), nullable=True)
    wac: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))

    # Return eligibility policy
    return_eligible: Mapped[bool] = mapped_column(default=True)
    return_window: Mapped[int] = mapped_column(Integer, default=180)
    credit_percentage: Mapped[int] = mapped_column(Integer, default=0)
    requires_dea_form: Mapped[bool] = mapped_column(default=False)
    destruction_required: Mapped[bool] = mapped_column(default=False)
