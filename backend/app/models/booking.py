"""
Booking model: a user's reservation of a property for a date range.

Key design decisions:
- Dates are calendar dates; the stay is the half-open range
  [check_in_date, check_out_date)
- The PostgreSQL exclusion constraint `bookings_no_overlap_per_property`
  (created in migration 001) is the authoritative guard against overlapping
  bookings on one property; the service-level checks only give early,
  specific error messages
- total_price is computed at write time and stored
"""

from sqlalchemy import Column, Uuid, Date, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

OVERLAP_CONSTRAINT_NAME = "bookings_no_overlap_per_property"


class Booking(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "bookings"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    user = relationship("User", back_populates="bookings")
    property = relationship("Property", lazy="selectin")

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="check_booking_dates_ordered"),
        Index("ix_bookings_property_dates", "property_id", "check_in_date", "check_out_date"),
        Index("ix_bookings_user_dates", "user_id", "check_in_date", "check_out_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, user={self.user_id}, property={self.property_id}, "
            f"{self.check_in_date}->{self.check_out_date})>"
        )
