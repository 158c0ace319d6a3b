"""Product model."""
from sqlalchemy import Column, String, Text, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from backoffice.database import Base, BigIntPK

PRODUCT_STATUSES = ('available', 'not available')


class Product(Base):
    """Product model."""

    __tablename__ = 'products'
    __table_args__ = (
        CheckConstraint('unit_price > 0', name='ck_products_unit_price_positive'),
    )

    product_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    product_type = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default='available')

    # Relationships
    # Cascade delete-orphan: deleting the product removes its inventory row
    inventory = relationship('Inventory', uselist=False, back_populates='product', cascade="all, delete-orphan")

    @property
    def quantity_in_stock(self):
        """Get stock quantity from inventory."""
        if self.inventory:
            return self.inventory.quantity_in_stock
        return 0

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'description': self.description,
            'unit_price': float(self.unit_price),
            'product_type': self.product_type,
            'status': self.status,
        }

    def __repr__(self):
        return f"<Product(product_id={self.product_id}, name='{self.product_name}')>"
