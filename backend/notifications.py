"""
Best-effort notifications to the shop about new, cancelled and changed bookings.

Every configured channel (Telegram, WhatsApp, admin e-mail) gets the message.
A failing channel is logged and skipped; nothing here ever raises into the
request that triggered it.
"""
import logging
from datetime import date

from starlette.concurrency import run_in_threadpool

from config import Settings
from schedule import MONTH_NAMES
from services.email_service import email_enabled, send_admin_email
from services.telegram_service import send_telegram, telegram_enabled
from services.whatsapp_service import send_whatsapp, whatsapp_enabled

logger = logging.getLogger(__name__)

SIGNATURE = "Berberi - Sistem Rezervimi"


def pretty_date(value: str) -> str:
    d = date.fromisoformat(value)
    return f"{d.day:02d} {MONTH_NAMES[d.month - 1]} {d.year}"


def snapshot(reservation) -> dict:
    """Plain copy of the fields a message needs, detached from the db session."""
    return {
        "full_name": reservation.full_name,
        "date": reservation.date,
        "start_time": reservation.start_time,
        "end_time": reservation.end_time,
        "code": reservation.reservation_code,
    }


def render_html(title: str, lines: list[str]) -> str:
    body = "\n".join(lines)
    return f"<b>{title}</b>\n\n{body}\n\n<i>{SIGNATURE}</i>"


def render_plain(title: str, lines: list[str]) -> str:
    text = render_html(title, lines)
    for tag in ("<b>", "</b>", "<i>", "</i>", "<code>", "</code>"):
        text = text.replace(tag, "")
    return text


def _reservation_lines(r: dict) -> list[str]:
    return [
        f"<b>Emri:</b> {r['full_name']}",
        f"<b>Data:</b> {pretty_date(r['date'])}",
        f"<b>Ora:</b> {r['start_time']} - {r['end_time']}",
        f"<b>Kodi:</b> <code>{r['code']}</code>",
    ]


class Notifier:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        s = self.settings
        return telegram_enabled(s) or whatsapp_enabled(s) or email_enabled(s)

    async def reservation_created(self, r: dict):
        await self.send("Rezervim i Ri!", _reservation_lines(r))

    async def reservation_cancelled(self, r: dict):
        await self.send("Rezervim i Anuluar", _reservation_lines(r))

    async def reservation_changed(self, old: dict, new: dict):
        lines = [
            f"<b>Emri:</b> {old['full_name']}",
            "",
            "<b>NGA:</b>",
            f"{pretty_date(old['date'])} {old['start_time']} - {old['end_time']}",
            "",
            "<b>NË:</b>",
            f"{pretty_date(new['date'])} {new['start_time']} - {new['end_time']}",
            "",
            f"<b>Kodi:</b> <code>{old['code']}</code>",
        ]
        await self.send("Rezervim i Ndryshuar", lines)

    async def send(self, title: str, lines: list[str]):
        s = self.settings
        if not self.enabled:
            logger.debug("Notifications disabled, skipping '%s'", title)
            return

        if telegram_enabled(s):
            try:
                await send_telegram(s, render_html(title, lines))
            except Exception as e:
                logger.warning("Telegram notification failed: %s", e)

        if whatsapp_enabled(s):
            try:
                await run_in_threadpool(send_whatsapp, s, render_plain(title, lines))
            except Exception as e:
                logger.warning("WhatsApp notification failed: %s", e)

        if email_enabled(s):
            try:
                html = render_html(title, lines).replace("\n", "<br>")
                await send_admin_email(s, title, f"<html><body>{html}</body></html>")
            except Exception as e:
                logger.warning("E-mail notification failed: %s", e)
