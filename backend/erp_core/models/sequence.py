"""ERP Core — Per company+year order number counter."""
import uuid

from sqlalchemy import BigInteger, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from erp_core.db.base import Base


class OrderSequence(Base):
    """
    One row per (company, year). The row is locked while the next value is
    taken, so concurrent order creation never hands out the same number.
    """

    __tablename__ = "order_sequences"
    __table_args__ = (UniqueConstraint("company_id", "year", name="uq_order_sequences_company_year"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    year: Mapped[str] = mapped_column(String(2), nullable=False)
    last_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
