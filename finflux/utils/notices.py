"""Notificaciones transitorias (toasts) que se devuelven al dashboard."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from finflux.utils.errors import (
    BackendError,
    BackendUnavailableError,
    FinfluxError,
    ValidationError,
)


class NoticeVariant(str, Enum):
    """Variantes visuales de una notificación."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notice:
    """Mensaje corto para el usuario: título, descripción y variante."""

    title: str
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant.value,
        }


def success(title: str, description: str = "") -> Notice:
    return Notice(title=title, description=description)


def notice_from_error(error: Exception, fallback: str = "Something went wrong") -> Notice:
    """
    Convierte una excepción en Notice.

    Usa el mensaje del backend si existe; si no, el mensaje genérico.
    """
    if isinstance(error, ValidationError):
        return Notice("Validation", error.message, NoticeVariant.DESTRUCTIVE)

    if isinstance(error, BackendUnavailableError):
        return Notice("Network Error", fallback, NoticeVariant.DESTRUCTIVE)

    if isinstance(error, BackendError):
        backend_message = error.details.get("backend_message")
        return Notice("Error", backend_message or fallback, NoticeVariant.DESTRUCTIVE)

    if isinstance(error, FinfluxError):
        return Notice("Error", error.message or fallback, NoticeVariant.DESTRUCTIVE)

    return Notice("Error", fallback, NoticeVariant.DESTRUCTIVE)
