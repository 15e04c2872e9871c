#!/usr/bin/env python3
"""
Operator commands against the configured database (DATABASE_URL / .env).

Usage:
  berberi-manage purge                  delete past reservations now
  berberi-manage purge-cancelled        delete every cancelled reservation
  berberi-manage create-admin [--username U --password P]
"""
import argparse
import sys

from auth import seed_admin, set_password
from cleanup import purge_expired
from clock import Clock
from config import Settings
from database import Database
from repository import ReservationRepository


def cmd_purge(db, settings: Settings):
    now = Clock(settings.TIMEZONE).now()
    deleted = purge_expired(db, now)
    print(f"Deleted {deleted} past reservations (now {now:%Y-%m-%d %H:%M}).")
    return deleted


def cmd_purge_cancelled(db, settings: Settings):
    deleted = ReservationRepository(db).delete_cancelled()
    print(f"Deleted {deleted} cancelled reservations.")
    return deleted


def cmd_create_admin(db, settings: Settings, username=None, password=None):
    if username or password:
        if not username or not password:
            raise SystemExit("--username and --password go together")
        admin = set_password(db, username, password)
        print(f"Admin '{admin.username}' is ready.")
        return admin
    admin = seed_admin(db, settings)
    if admin is None:
        print("An admin user already exists.")
    else:
        print(f"Admin '{admin.username}' created.")
    return admin


def build_parser():
    parser = argparse.ArgumentParser(prog="berberi-manage", description="Barbershop booking maintenance")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("purge", help="Delete reservations that have already ended")
    sub.add_parser("purge-cancelled", help="Delete cancelled reservations")
    admin = sub.add_parser("create-admin", help="Seed the configured admin or set a user's password")
    admin.add_argument("--username")
    admin.add_argument("--password")
    return parser


def main(argv=None, settings: Settings | None = None):
    args = build_parser().parse_args(argv)
    settings = settings or Settings()

    database = Database(settings.DATABASE_URL)
    database.open()
    db = database.session()
    try:
        if args.command == "purge":
            cmd_purge(db, settings)
        elif args.command == "purge-cancelled":
            cmd_purge_cancelled(db, settings)
        else:
            cmd_create_admin(db, settings, args.username, args.password)
    except SystemExit:
        raise
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()
        database.close()


if __name__ == "__main__":
    main()
