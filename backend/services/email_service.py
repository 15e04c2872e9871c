from fastapi_mail import ConnectionConfig, FastMail, MessageSchema

from config import Settings


def email_enabled(settings: Settings) -> bool:
    return all((settings.MAIL_USERNAME, settings.MAIL_PASSWORD, settings.MAIL_FROM, admin_address(settings)))


def admin_address(settings: Settings) -> str:
    return settings.ADMIN_EMAIL or settings.MAIL_USERNAME


def connection_config(settings: Settings) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.MAIL_USERNAME,
        MAIL_PASSWORD=settings.MAIL_PASSWORD,
        MAIL_FROM=settings.MAIL_FROM,
        MAIL_PORT=settings.MAIL_PORT,
        MAIL_SERVER=settings.MAIL_SERVER,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
    )


async def send_admin_email(settings: Settings, subject: str, html_body: str):
    message = MessageSchema(
        subject=subject,
        recipients=[admin_address(settings)],
        body=html_body,
        subtype="html"
    )
    fm = FastMail(connection_config(settings))
    await fm.send_message(message)
