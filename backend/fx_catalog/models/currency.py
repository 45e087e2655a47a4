"""
Currency model.
"""

from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship

from fx_catalog.db.base import Base


class Currency(Base):
    """A currency identified by its 3-letter uppercase code."""
    
    __tablename__ = "currencies"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(3), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Rates quoting this currency; the database removes them on delete
    rates = relationship(
        "Rate",
        foreign_keys="Rate.target_currency_id",
        back_populates="target_currency",
        passive_deletes=True,
    )
    
    def __repr__(self):
        return f"<Currency(id={self.id}, code={self.code})>"
