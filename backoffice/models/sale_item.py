"""Sale Item model."""
from sqlalchemy import Column, BigInteger, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from backoffice.database import Base, BigIntPK


class SaleItem(Base):
    """Sale Item (line item, price captured at time of sale)."""

    __tablename__ = 'sale_items'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_sale_items_quantity_positive'),
        CheckConstraint('price_at_sale >= 0', name='ck_sale_items_price_non_negative'),
    )

    sale_item_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sales.sale_id'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('products.product_id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_sale = Column(Numeric(12, 2), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product')

    @property
    def line_total(self):
        return self.quantity * self.price_at_sale

    def to_dict(self):
        return {
            'sale_item_id': self.sale_item_id,
            'sale_id': self.sale_id,
            'product_id': self.product_id,
            'quantity': self.quantity,
            'price_at_sale': float(self.price_at_sale),
        }

    def __repr__(self):
        return f"<SaleItem(sale_item_id={self.sale_item_id}, product_id={self.product_id}, quantity={self.quantity})>"
