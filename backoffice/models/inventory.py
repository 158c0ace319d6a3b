"""Inventory model."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backoffice.database import Base, BigIntPK


class Inventory(Base):
    """Inventory - 1:1 stock counter per Product."""

    __tablename__ = 'inventory'
    __mapper_args__ = {'eager_defaults': True}
    __table_args__ = (
        CheckConstraint('quantity_in_stock >= 0', name='ck_inventory_quantity_non_negative'),
    )

    inventory_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('products.product_id'), nullable=False, unique=True)
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationship
    product = relationship('Product', back_populates='inventory')

    def to_dict(self):
        return {
            'inventory_id': self.inventory_id,
            'product_id': self.product_id,
            'quantity_in_stock': self.quantity_in_stock,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }

    def __repr__(self):
        return f"<Inventory(product_id={self.product_id}, quantity_in_stock={self.quantity_in_stock})>"
