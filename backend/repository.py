# Data access for reservations, rest days and admin users.
# Each repository wraps one SQLAlchemy session and commits its own writes.
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import STATUS_ACTIVE, STATUS_CANCELLED, AdminSession, AdminUser, Reservation, RestDay


class ReservationRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, full_name: str, date: str, start_time: str, end_time: str, code: str) -> Reservation:
        """Insert an active reservation; IntegrityError propagates after rollback."""
        r = Reservation(
            full_name=full_name,
            date=date,
            start_time=start_time,
            end_time=end_time,
            reservation_code=code,
            status=STATUS_ACTIVE,
        )
        self.session.add(r)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        self.session.refresh(r)
        return r

    def code_exists(self, code: str) -> bool:
        stmt = select(Reservation.id).where(Reservation.reservation_code == code)
        return self.session.execute(stmt).first() is not None

    def get_active_by_code(self, code: str) -> Reservation | None:
        stmt = select(Reservation).where(
            Reservation.reservation_code == code,
            Reservation.status == STATUS_ACTIVE,
        )
        return self.session.execute(stmt).scalars().first()

    def get_active_at(self, date: str, start_time: str) -> Reservation | None:
        stmt = select(Reservation).where(
            Reservation.date == date,
            Reservation.start_time == start_time,
            Reservation.status == STATUS_ACTIVE,
        )
        return self.session.execute(stmt).scalars().first()

    def list_between(self, start_date: str, end_date: str, active_only: bool = True) -> list[Reservation]:
        stmt = select(Reservation).where(Reservation.date.between(start_date, end_date))
        if active_only:
            stmt = stmt.where(Reservation.status == STATUS_ACTIVE)
        stmt = stmt.order_by(Reservation.date, Reservation.start_time)
        return list(self.session.execute(stmt).scalars())

    def list_upcoming(self, start_date: str, end_date: str, today: str, now_time: str) -> list[Reservation]:
        """Active reservations in the range that have not ended yet."""
        stmt = (
            select(Reservation)
            .where(
                Reservation.date.between(start_date, end_date),
                Reservation.status == STATUS_ACTIVE,
                or_(
                    Reservation.date > today,
                    and_(Reservation.date == today, Reservation.end_time > now_time),
                ),
            )
            .order_by(Reservation.date, Reservation.start_time)
        )
        return list(self.session.execute(stmt).scalars())

    def move(self, reservation: Reservation, date: str, start_time: str, end_time: str) -> Reservation:
        reservation.date = date
        reservation.start_time = start_time
        reservation.end_time = end_time
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        self.session.refresh(reservation)
        return reservation

    def cancel(self, code: str) -> Reservation | None:
        r = self.get_active_by_code(code)
        if r is None:
            return None
        r.status = STATUS_CANCELLED
        self.session.commit()
        self.session.refresh(r)
        return r

    def delete_before(self, date: str) -> int:
        result = self.session.execute(delete(Reservation).where(Reservation.date < date))
        self.session.commit()
        return result.rowcount or 0

    def delete_ended_on(self, date: str, now_time: str) -> int:
        result = self.session.execute(
            delete(Reservation).where(Reservation.date == date, Reservation.end_time <= now_time)
        )
        self.session.commit()
        return result.rowcount or 0

    def delete_cancelled(self) -> int:
        result = self.session.execute(delete(Reservation).where(Reservation.status == STATUS_CANCELLED))
        self.session.commit()
        return result.rowcount or 0


class RestDayRepository:
    def __init__(self, session: Session):
        self.session = session

    def is_rest_day(self, date: str) -> bool:
        stmt = select(RestDay.id).where(RestDay.date == date)
        return self.session.execute(stmt).first() is not None

    def list_between(self, start_date: str, end_date: str) -> list[str]:
        stmt = select(RestDay.date).where(RestDay.date.between(start_date, end_date)).order_by(RestDay.date)
        return list(self.session.execute(stmt).scalars())

    def mark(self, date: str) -> int:
        """Close `date`: drop its reservations and record the rest day in one commit."""
        result = self.session.execute(delete(Reservation).where(Reservation.date == date))
        deleted = result.rowcount or 0
        if not self.is_rest_day(date):
            self.session.add(RestDay(date=date))
        self.session.commit()
        return deleted

    def unmark(self, date: str) -> bool:
        result = self.session.execute(delete(RestDay).where(RestDay.date == date))
        self.session.commit()
        return bool(result.rowcount)


class AdminRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_username(self, username: str) -> AdminUser | None:
        stmt = select(AdminUser).where(AdminUser.username == username)
        return self.session.execute(stmt).scalars().first()

    def count(self) -> int:
        return len(self.session.execute(select(AdminUser.id)).all())

    def create(self, username: str, password_hash: str) -> AdminUser:
        admin = AdminUser(username=username, password_hash=password_hash)
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        return admin


class AdminSessionRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, admin_id: int, token: str) -> AdminSession:
        s = AdminSession(admin_id=admin_id, token=token)
        self.session.add(s)
        self.session.commit()
        self.session.refresh(s)
        return s

    def get_admin(self, token: str) -> AdminUser | None:
        stmt = (
            select(AdminUser)
            .join(AdminSession, AdminSession.admin_id == AdminUser.id)
            .where(AdminSession.token == token)
        )
        return self.session.execute(stmt).scalars().first()

    def delete(self, token: str) -> bool:
        result = self.session.execute(delete(AdminSession).where(AdminSession.token == token))
        self.session.commit()
        return bool(result.rowcount)
