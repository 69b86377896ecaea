from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Index, UniqueConstraint, CheckConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin


class Product(Base, TimestampMixin, SoftDeleteMixin, AuditMixin, CompanyScopedMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(50), nullable=False, index=True)
    barcode = Column(String(64), nullable=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=True, index=True)
    description = Column(String(500), nullable=True)
    unit = Column(String(20), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    cost = Column(Numeric(12, 2), nullable=True)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))

    track_inventory = Column(Boolean, nullable=False, default=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("company_id", "sku", name="uq_product_company_sku"),
        Index("ix_product_company_barcode", "company_id", "barcode"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        return bool(self.track_inventory and self.stock_quantity <= self.low_stock_threshold)

    def __repr__(self):
        return f"<Product id={self.id} sku={self.sku} name={self.name}>"
