from twilio.rest import Client

from config import Settings


def whatsapp_enabled(settings: Settings) -> bool:
    return all((
        settings.TWILIO_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_WHATSAPP_FROM,
        settings.ADMIN_WHATSAPP_TO,
    ))


def send_whatsapp(settings: Settings, message: str):
    client = Client(settings.TWILIO_SID, settings.TWILIO_AUTH_TOKEN)
    client.messages.create(
        body=message,
        from_=f'whatsapp:{settings.TWILIO_WHATSAPP_FROM}',
        to=f'whatsapp:{settings.ADMIN_WHATSAPP_TO}'
    )
