"""Sale model."""
from sqlalchemy import Column, BigInteger, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backoffice.database import Base, BigIntPK


class Sale(Base):
    """
    Sale with aggregate monetary totals.

    subtotal, discount_amount and total_amount are derived values; they are
    only written by the line-item coordinator and the discount applier.
    """

    __tablename__ = 'sales'
    __mapper_args__ = {'eager_defaults': True}
    __table_args__ = (
        CheckConstraint(
            'discount_percentage >= 0 AND discount_percentage <= 100',
            name='ck_sales_discount_percentage_range'
        ),
    )

    sale_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('users.user_id'), nullable=False)
    sale_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Relationships
    user = relationship('User', back_populates='sales')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan')

    @property
    def has_discount(self):
        return (self.discount_percentage or 0) > 0

    def to_dict(self):
        return {
            'sale_id': self.sale_id,
            'user_id': self.user_id,
            'sale_date': self.sale_date.isoformat() if self.sale_date else None,
            'subtotal': float(self.subtotal or 0),
            'discount_percentage': float(self.discount_percentage or 0),
            'discount_amount': float(self.discount_amount or 0),
            'total_amount': float(self.total_amount or 0),
            'has_discount': self.has_discount,
        }

    def __repr__(self):
        return f"<Sale(sale_id={self.sale_id}, subtotal={self.subtotal}, total_amount={self.total_amount})>"
