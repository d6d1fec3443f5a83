from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jockeyfinder.database import Base


class RideRequest(Base):
    __tablename__ = "ride_requests"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    meeting_id: Mapped[int] = mapped_column(ForeignKey("meetings.id"), index=True)
    trainer_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    jockey_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    horse: Mapped[str | None] = mapped_column(String(100))
    race_number: Mapped[int | None] = mapped_column(Integer)
    note: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="requested")  # requested, accepted, declined, cancelled

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    meeting: Mapped["Meeting"] = relationship(back_populates="ride_requests")
