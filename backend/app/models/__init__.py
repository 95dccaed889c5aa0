from app.models.user import User
from app.models.auth_identity import AuthIdentity
from app.models.property import Property
from app.models.booking import Booking

__all__ = ["User", "AuthIdentity", "Property", "Booking"]
