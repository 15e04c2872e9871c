import httpx

from config import Settings

TELEGRAM_API = "https://api.telegram.org"


def telegram_enabled(settings: Settings) -> bool:
    return bool(settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID)


async def send_telegram(settings: Settings, message: str, client: httpx.AsyncClient | None = None):
    """Post an HTML message to the shop chat; raises on a non-2xx answer."""
    url = f"{TELEGRAM_API}/bot{settings.TELEGRAM_BOT_TOKEN}/sendMessage"
    payload = {"chat_id": settings.TELEGRAM_CHAT_ID, "text": message, "parse_mode": "HTML"}
    if client is not None:
        resp = await client.post(url, json=payload)
    else:
        async with httpx.AsyncClient(timeout=5.0) as c:
            resp = await c.post(url, json=payload)
    resp.raise_for_status()
    return resp.json()
