"""
Exchange rate model: 1 unit of the base currency = `rate` units of the target.
"""

from sqlalchemy import Column, Integer, Numeric, Date, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from fx_catalog.db.base import Base


class Rate(Base):
    """Daily rate of a target currency against the base currency."""
    
    __tablename__ = "rates"
    __table_args__ = (
        UniqueConstraint(
            "base_currency_id",
            "target_currency_id",
            "effective_date",
            name="uq_rates_base_target_date",
        ),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    base_currency_id = Column(Integer, ForeignKey("currencies.id", ondelete="CASCADE"), nullable=False, index=True)
    target_currency_id = Column(Integer, ForeignKey("currencies.id", ondelete="CASCADE"), nullable=False, index=True)
    rate = Column(Numeric(18, 6, asdecimal=False), nullable=False)
    effective_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    base_currency = relationship("Currency", foreign_keys=[base_currency_id])
    target_currency = relationship("Currency", foreign_keys=[target_currency_id], back_populates="rates")
    
    def __repr__(self):
        return (
            f"<Rate(target_currency_id={self.target_currency_id}, "
            f"rate={self.rate}, effective_date={self.effective_date})>"
        )
