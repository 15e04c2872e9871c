from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text

from database import Base

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"


def utcnow():
    return datetime.now(timezone.utc)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    date = Column(String(10), nullable=False, index=True)        # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)               # HH:MM
    end_time = Column(String(5), nullable=False)
    reservation_code = Column(String(16), unique=True, nullable=False)
    status = Column(String, nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # one active booking per slot; cancelled rows keep their history
    __table_args__ = (
        Index(
            "uq_reservations_active_slot",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    @property
    def display(self) -> str:
        return f"{self.start_time} - {self.end_time}"


class RestDay(Base):
    __tablename__ = "rest_days"

    id = Column(Integer, primary_key=True)
    date = Column(String(10), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class AdminSession(Base):
    """Server-side half of an admin login; logout deletes the row."""
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
