from datetime import datetime
from pydantic import BaseModel


class ProfileSchema(BaseModel):
    id: str
    full_name: str
    role: str
    status: str
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ProfileSnapshotSchema(BaseModel):
    """Instantané dénormalisé utilisé dans les listes."""
    id: str
    full_name: str
    role: str
    status: str

    class Config:
        from_attributes = True


class ProfileStatusUpdate(BaseModel):
    status: str
