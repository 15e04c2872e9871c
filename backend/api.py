from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from booking import BookingService, full_date, reservation_to_dict
from database import get_db
from notifications import Notifier, snapshot
from schedule import DAY_NAMES

router = APIRouter(prefix="/api")


# ================== DEPENDENCIES ==================
def get_service(request: Request, db: Session = Depends(get_db)) -> BookingService:
    state = request.app.state
    return BookingService(db, state.settings, state.clock.now())


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


# ================== BODIES ==================
class BookRequest(BaseModel):
    full_name: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None


class CodeRequest(BaseModel):
    code: Optional[str] = None


class ChangeRequest(BaseModel):
    code: Optional[str] = None
    new_date: Optional[str] = None
    new_start_time: Optional[str] = None


def _day_name(value: str) -> str:
    return DAY_NAMES[date.fromisoformat(value).weekday()]


# ================== API ==================
@router.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "time": request.app.state.clock.now().strftime("%Y-%m-%d %H:%M:%S"),
    }


@router.get("/week")
def week(service: BookingService = Depends(get_service)):
    return {"success": True, **service.week_view()}


@router.post("/book")
def book(
    data: BookRequest,
    background: BackgroundTasks,
    service: BookingService = Depends(get_service),
    notifier: Notifier = Depends(get_notifier),
):
    r = service.create(data.full_name, data.date, data.start_time)
    background.add_task(notifier.reservation_created, snapshot(r))
    return {
        "success": True,
        "message": "Termini u rezervua me sukses!",
        "reservation": {
            "id": r.id,
            "code": r.reservation_code,
            "name": r.full_name,
            "date": r.date,
            "startTime": r.start_time,
            "endTime": r.end_time,
            "display": r.display,
        },
    }


@router.post("/code/find")
def find_by_code(data: CodeRequest, service: BookingService = Depends(get_service)):
    r = service.find(data.code)
    detail = reservation_to_dict(r)
    detail["dayName"] = _day_name(r.date)
    detail["fullDate"] = full_date(r.date)
    return {"success": True, "reservation": detail}


@router.post("/code/cancel")
def cancel_by_code(
    data: CodeRequest,
    background: BackgroundTasks,
    service: BookingService = Depends(get_service),
    notifier: Notifier = Depends(get_notifier),
):
    r = service.cancel(data.code)
    background.add_task(notifier.reservation_cancelled, snapshot(r))
    return {
        "success": True,
        "message": "Rezervimi u anulua me sukses!",
        "cancelledReservation": {
            "code": r.reservation_code,
            "name": r.full_name,
            "date": r.date,
            "time": r.display,
            "dayName": _day_name(r.date),
        },
    }


@router.post("/code/change")
def change_by_code(
    data: ChangeRequest,
    background: BackgroundTasks,
    service: BookingService = Depends(get_service),
    notifier: Notifier = Depends(get_notifier),
):
    old, r = service.change(data.code, data.new_date, data.new_start_time)
    background.add_task(notifier.reservation_changed, old, snapshot(r))
    return {
        "success": True,
        "message": "Rezervimi u ndryshua me sukses!",
        "updatedReservation": {
            "code": r.reservation_code,
            "name": r.full_name,
            "oldDate": old["date"],
            "oldTime": f"{old['start_time']} - {old['end_time']}",
            "newDate": r.date,
            "newTime": r.display,
            "newDayName": _day_name(r.date),
            "newFullDate": full_date(r.date),
        },
    }
