from app.schemas.user import RegisterInput, LoginInput, OkResponse, MeResponse, AuthUserOut
from app.schemas.property import (
    PropertyCreate, PropertyPatch, PropertyResponse, PropertyEnvelope, PropertyListResponse,
    PropertyDeleteResponse, IsBookedResponse, BookedScope, UploadImageResponse,
)
from app.schemas.booking import (
    BookingCreate, BookingDatesUpdate, BookingResponse, BookingEnvelope, BookingListResponse,
)

__all__ = [
    "RegisterInput", "LoginInput", "OkResponse", "MeResponse", "AuthUserOut",
    "PropertyCreate", "PropertyPatch", "PropertyResponse", "PropertyEnvelope",
    "PropertyListResponse", "PropertyDeleteResponse", "IsBookedResponse", "BookedScope",
    "UploadImageResponse",
    "BookingCreate", "BookingDatesUpdate", "BookingResponse", "BookingEnvelope",
    "BookingListResponse",
]
