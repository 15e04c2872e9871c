from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

import auth
from api import get_notifier, get_service
from booking import BookingService
from database import get_db
from errors import ValidationError
from notifications import Notifier, snapshot

router = APIRouter(prefix="/api/admin")


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AdminCancelRequest(BaseModel):
    reservationCode: Optional[str] = None


class RestDayRequest(BaseModel):
    date: Optional[str] = None


@router.get("/session")
def session(request: Request, db: Session = Depends(get_db)):
    admin = auth.current_admin(request, db)
    if admin is None:
        return {"success": True, "loggedIn": False}
    return {"success": True, "loggedIn": True, "admin": admin}


@router.post("/login")
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    if not data.username or not data.password:
        raise ValidationError("Emri i përdoruesit dhe fjalëkalimi janë të detyrueshëm.")
    admin = auth.authenticate(db, data.username, data.password)
    auth.login(request, db, admin)
    return {
        "success": True,
        "message": "U hyrt me sukses si administrator.",
        "admin": {"id": admin.id, "username": admin.username},
    }


@router.post("/logout")
def logout(request: Request, db: Session = Depends(get_db)):
    auth.logout(request, db)
    return {"success": True, "message": "U dolët me sukses."}


@router.get("/reservations")
def reservations(
    admin: dict = Depends(auth.require_admin),
    service: BookingService = Depends(get_service),
):
    return {"success": True, **service.admin_overview()}


@router.post("/cancel")
def cancel(
    data: AdminCancelRequest,
    background: BackgroundTasks,
    admin: dict = Depends(auth.require_admin),
    service: BookingService = Depends(get_service),
    notifier: Notifier = Depends(get_notifier),
):
    r = service.cancel(data.reservationCode)
    background.add_task(notifier.reservation_cancelled, snapshot(r))
    return {
        "success": True,
        "message": "Rezervimi u anulua me sukses nga administratori.",
        "cancelledCode": r.reservation_code,
    }


@router.post("/rest-days/mark")
def mark_rest_day(
    data: RestDayRequest,
    admin: dict = Depends(auth.require_admin),
    service: BookingService = Depends(get_service),
):
    day, deleted = service.mark_rest_day(data.date)
    return {
        "success": True,
        "message": f"Dita {day} u shënua si ditë pushimi. {deleted} rezervime u fshinë.",
        "date": day,
        "deletedReservations": deleted,
    }


@router.post("/rest-days/unmark")
def unmark_rest_day(
    data: RestDayRequest,
    admin: dict = Depends(auth.require_admin),
    service: BookingService = Depends(get_service),
):
    day = service.unmark_rest_day(data.date)
    return {"success": True, "message": f"Dita {day} nuk është më ditë pushimi.", "date": day}
