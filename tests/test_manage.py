import pytest
from sqlalchemy import select

import manage
from auth import verify_password
from database import Database
from models import AdminUser, Reservation


@pytest.fixture
def file_settings(settings, tmp_path):
    settings.DATABASE_URL = f"sqlite:///{tmp_path / 'berberi.db'}"
    return settings


def open_db(settings):
    database = Database(settings.DATABASE_URL)
    database.open()
    return database


def seed(settings, rows):
    database = open_db(settings)
    db = database.session()
    for day, start, end, code, status in rows:
        db.add(Reservation(
            full_name="Klient", date=day, start_time=start, end_time=end,
            reservation_code=code, status=status,
        ))
    db.commit()
    db.close()
    database.close()


def stored(settings, column):
    database = open_db(settings)
    db = database.session()
    try:
        return sorted(db.execute(select(column)).scalars())
    finally:
        db.close()
        database.close()


def test_purge_command(file_settings, capsys):
    seed(file_settings, [
        ("2020-01-06", "09:00", "09:25", "OLD001", "active"),
        ("2099-01-05", "09:00", "09:25", "LATER1", "active"),
    ])

    manage.main(["purge"], settings=file_settings)

    assert stored(file_settings, Reservation.reservation_code) == ["LATER1"]
    assert "Deleted 1 past reservations" in capsys.readouterr().out


def test_purge_cancelled_command(file_settings):
    seed(file_settings, [
        ("2099-01-05", "09:00", "09:25", "KEEP01", "active"),
        ("2099-01-05", "09:25", "09:50", "GONE01", "cancelled"),
    ])

    manage.main(["purge-cancelled"], settings=file_settings)

    assert stored(file_settings, Reservation.reservation_code) == ["KEEP01"]


def test_create_admin_seeds_once(file_settings, capsys):
    manage.main(["create-admin"], settings=file_settings)
    manage.main(["create-admin"], settings=file_settings)

    assert stored(file_settings, AdminUser.username) == ["admin"]
    assert "already exists" in capsys.readouterr().out


def test_create_admin_sets_password(file_settings):
    manage.main(["create-admin", "--username", "berberi", "--password", "s3cret!"], settings=file_settings)
    manage.main(["create-admin", "--username", "berberi", "--password", "changed"], settings=file_settings)

    database = open_db(file_settings)
    db = database.session()
    admin = db.execute(select(AdminUser).where(AdminUser.username == "berberi")).scalars().one()
    assert verify_password("changed", admin.password_hash)
    db.close()
    database.close()


def test_create_admin_needs_both_flags(file_settings):
    with pytest.raises(SystemExit):
        manage.main(["create-admin", "--username", "berberi"], settings=file_settings)
