from datetime import datetime
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from jockeyfinder.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Identifiant fourni par le fournisseur d'identité (uuid)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(150))
    role: Mapped[str] = mapped_column(String(20), index=True)  # jockey, trainer, owner, admin
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, approved, approved_viewonly, rejected
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
