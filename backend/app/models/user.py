"""
Local user record mirroring an account in the identity provider.

`auth_user_id` links the row to the provider's user id; every foreign key in
the application points at `users.id`, never at the provider id.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"

    auth_user_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Relationships
    properties = relationship("Property", back_populates="owner", passive_deletes=True)
    bookings = relationship("Booking", back_populates="user", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
