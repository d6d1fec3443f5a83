from jockeyfinder.models.profile import Profile
from jockeyfinder.models.verification_document import VerificationDocument
from jockeyfinder.models.meeting import Meeting
from jockeyfinder.models.attendance import Attendance
from jockeyfinder.models.ride_request import RideRequest

__all__ = ["Profile", "VerificationDocument", "Meeting", "Attendance", "RideRequest"]
