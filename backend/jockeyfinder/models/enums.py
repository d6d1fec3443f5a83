import enum


class Role(str, enum.Enum):
    JOCKEY = "jockey"
    TRAINER = "trainer"
    OWNER = "owner"
    ADMIN = "admin"


class ProfileStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    APPROVED_VIEWONLY = "approved_viewonly"
    REJECTED = "rejected"


class Availability(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    NOT_AVAILABLE = "not_available"


class RequestStatus(str, enum.Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"  # réservé : aucune opération n'y mène


# Rôles soumis à la vérification de licence
VERIFIED_ROLES = (Role.JOCKEY.value, Role.TRAINER.value)