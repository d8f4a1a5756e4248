"""
Notificadores - Envío de alertas por SMS (Twilio) o Telegram.

El canal se elige con ALERT_CHANNEL. Todos los notificadores exponen
`send(text)` y levantan FinfluxError si el envío falla; quien llama
decide qué hacer con el fallo.
"""

import asyncio
import logging
import re
from typing import Protocol

from telegram import Bot
from telegram.error import TelegramError
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from finflux.config import get_settings
from finflux.domain.entities import Product
from finflux.utils.errors import (
    ErrorCategory,
    FinfluxError,
    NotificationError,
    with_error_handling,
)
from finflux.utils.formatting import format_liters

logger = logging.getLogger(__name__)
settings = get_settings()


class Notifier(Protocol):
    channel: str

    async def send(self, text: str) -> None: ...


def normalize_phone(phone: str) -> str:
    """
    Normaliza un número indio a formato E.164 (+91...).

    Números que ya traen "+" se respetan.
    """
    if not phone:
        return ""

    clean = re.sub(r"[\s\-()]", "", phone.strip())
    if clean.startswith("+"):
        return clean
    if clean.startswith("0") and len(clean) == 11:
        clean = clean[1:]
    if clean.startswith("91") and len(clean) == 12:
        return f"+{clean}"
    return f"+91{clean}"


def low_stock_message(product: Product) -> str:
    """Texto de la alerta de stock bajo."""
    return (
        f"Low stock alert: {product.product_name} tank is at "
        f"{product.fill_percentage}% ({format_liters(product.current_level)} of "
        f"{format_liters(product.tank_capacity)}). Please arrange a refill."
    )


class SmsNotifier:
    """SMS vía Twilio a los números configurados."""

    channel = "sms"

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        recipients: list[str] | None = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number
        self.recipients = [
            normalize_phone(p)
            for p in (recipients if recipients is not None else settings.alert_phone_numbers)
            if p
        ]
        self._client: Client | None = None

    @property
    def client(self) -> Client | None:
        """Inicialización lazy del cliente de Twilio."""
        if self._client is None:
            if self.account_sid and self.auth_token:
                self._client = Client(
                    self.account_sid,
                    self.auth_token,
                    http_client=TwilioHttpClient(timeout=settings.request_timeout),
                )
            else:
                logger.error("Credenciales de Twilio no configuradas")
        return self._client

    @with_error_handling("twilio_send_sms", ErrorCategory.NOTIFICATION, reraise=True)
    def _send_sync(self, to_number: str, text: str) -> str:
        message = self.client.messages.create(body=text, from_=self.from_number, to=to_number)
        return message.sid

    async def send(self, text: str) -> None:
        if self.client is None:
            raise NotificationError("SMS provider not configured")
        if not self.recipients:
            raise NotificationError("No alert phone numbers configured")

        errors: list[str] = []
        for to_number in self.recipients:
            try:
                sid = await asyncio.to_thread(self._send_sync, to_number, text)
            except FinfluxError as e:
                logger.warning(f"SMS a {to_number} falló: {e.message}")
                errors.append(e.message)
                continue
            logger.info(f"SMS enviado a {to_number} (sid={sid})")

        if len(errors) == len(self.recipients):
            raise NotificationError("; ".join(errors))


class TelegramNotifier:
    """Mensaje al chat de Telegram configurado."""

    channel = "telegram"

    def __init__(self, token: str | None = None, chat_id: str | None = None):
        self.token = token or settings.telegram_bot_token
        self.chat_id = chat_id or settings.telegram_chat_id
        self._bot: Bot | None = None

    @property
    def bot(self) -> Bot | None:
        if self._bot is None and self.token:
            self._bot = Bot(token=self.token)
        return self._bot

    async def send(self, text: str) -> None:
        if self.bot is None or not self.chat_id:
            raise NotificationError("Telegram not configured")
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text)
        except TelegramError as e:
            raise NotificationError(f"Telegram send failed: {e}") from e
        logger.info(f"Alerta enviada a Telegram {self.chat_id}")


# ==================== Singleton ====================

_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Obtiene el notificador del canal configurado."""
    global _notifier
    if _notifier is None:
        if settings.alert_channel == "telegram":
            _notifier = TelegramNotifier()
        else:
            _notifier = SmsNotifier()
        logger.info(f"Canal de alertas: {_notifier.channel}")
    return _notifier
