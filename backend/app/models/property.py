"""
Property model: a rentable listing owned by a user.

Key design decisions:
- Duplicate names per owner are rejected by the service (trimmed,
  case-insensitive); the migration adds a functional unique index as backstop
- `availability` hides a listing from other users without deleting it
"""

from sqlalchemy import Column, Uuid, String, Text, Boolean, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Property(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "properties"

    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    availability = Column(Boolean, default=True, nullable=False)
    image_url = Column(String(1024), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="properties")

    __table_args__ = (
        CheckConstraint("price_per_night > 0", name="check_property_price_positive"),
        Index("ix_properties_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name}, owner={self.owner_id})>"
