from datetime import date, datetime
from sqlalchemy import String, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jockeyfinder.database import Base


class Meeting(Base):
    __tablename__ = "meetings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # DayID du calendrier LoveRacing : clé d'idempotence de la synchro
    external_id: Mapped[int | None] = mapped_column(unique=True, index=True)
    meeting_date: Mapped[date] = mapped_column(Date, index=True)
    track: Mapped[str] = mapped_column(String(100))
    club: Mapped[str | None] = mapped_column(String(150))
    source: Mapped[str] = mapped_column(String(30), default="loveracing")

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    attendance: Mapped[list["Attendance"]] = relationship(back_populates="meeting", cascade="all, delete-orphan")
    ride_requests: Mapped[list["RideRequest"]] = relationship(back_populates="meeting", cascade="all, delete-orphan")
