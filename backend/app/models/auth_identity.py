"""
Credential store backing the local identity provider.

Plays the part of the external identity system: the application tables never
reference it directly, only through `users.auth_user_id`.
"""

from sqlalchemy import Column, String

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AuthIdentity(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "auth_identities"

    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<AuthIdentity(id={self.id}, email={self.email})>"
