"""
Admin authentication.

Two states: anonymous and authenticated. A successful login stores a random
token in the signed session cookie and a matching row in `admin_sessions`;
logout deletes the row, so a copy of the old cookie stops working. Wrong
username and wrong password fail the same way and take the same bcrypt time.
"""
import logging
import secrets

from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from errors import AuthError
from models import AdminUser
from repository import AdminRepository, AdminSessionRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MSG_INVALID_CREDENTIALS = "Emri i përdoruesit ose fjalëkalimi është i gabuar."
MSG_NOT_AUTHORIZED = "Nuk jeni të autorizuar. Ju lutem hyni së pari."

SESSION_TOKEN = "admin_token"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def seed_admin(db: Session, settings: Settings) -> AdminUser | None:
    """Create the configured admin when no admin exists yet."""
    repo = AdminRepository(db)
    if repo.count() > 0:
        return None
    admin = repo.create(settings.ADMIN_USER, hash_password(settings.ADMIN_PASS))
    logger.info("Seeded default admin '%s'", admin.username)
    return admin


def set_password(db: Session, username: str, password: str) -> AdminUser:
    """Create `username` or replace its password."""
    repo = AdminRepository(db)
    admin = repo.get_by_username(username)
    if admin is None:
        admin = repo.create(username, hash_password(password))
        logger.info("Created admin '%s'", username)
        return admin
    admin.password_hash = hash_password(password)
    db.commit()
    logger.info("Updated password for admin '%s'", username)
    return admin


def authenticate(db: Session, username: str, password: str) -> AdminUser:
    admin = AdminRepository(db).get_by_username(username.strip())
    if admin is None:
        # same cost as a real check
        pwd_context.dummy_verify()
        ok = False
    else:
        ok = verify_password(password, admin.password_hash)
    if not ok:
        logger.info("Failed admin login for '%s'", username)
        raise AuthError(MSG_INVALID_CREDENTIALS)
    logger.info("Admin '%s' logged in", admin.username)
    return admin


def login(request: Request, db: Session, admin: AdminUser):
    old = request.session.get(SESSION_TOKEN)
    if old:
        AdminSessionRepository(db).delete(old)
    token = secrets.token_urlsafe(32)
    AdminSessionRepository(db).create(admin.id, token)
    request.session.clear()
    request.session[SESSION_TOKEN] = token


def logout(request: Request, db: Session):
    token = request.session.get(SESSION_TOKEN)
    if token:
        AdminSessionRepository(db).delete(token)
    request.session.clear()


def current_admin(request: Request, db: Session) -> dict | None:
    token = request.session.get(SESSION_TOKEN)
    if not token:
        return None
    admin = AdminSessionRepository(db).get_admin(token)
    if admin is None:
        return None
    return {"id": admin.id, "username": admin.username}


def require_admin(request: Request, db: Session = Depends(get_db)) -> dict:
    """FastAPI dependency guarding the admin endpoints."""
    admin = current_admin(request, db)
    if admin is None:
        raise AuthError(MSG_NOT_AUTHORIZED)
    return admin
