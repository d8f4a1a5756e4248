"""
Decoder de respuestas del backend.

El backend devuelve colecciones en dos formas según el recurso:
un array plano o un envelope paginado {content, totalElements, ...}.
Ambas son válidas; cualquier otra cosa se trata como colección vacía.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ResponseShape(str, Enum):
    """Formas posibles de una respuesta de colección."""

    ARRAY = "array"
    PAGE = "page"
    UNKNOWN = "unknown"


@dataclass
class Page:
    """Página normalizada de resultados."""

    content: list[dict[str, Any]] = field(default_factory=list)
    total_elements: int = 0
    total_pages: int = 0
    number: int = 0
    first: bool = True
    last: bool = True

    def __len__(self) -> int:
        return len(self.content)


def classify(payload: Any) -> ResponseShape:
    """Determina la forma de un payload de colección."""
    if isinstance(payload, list):
        return ResponseShape.ARRAY
    if isinstance(payload, dict) and isinstance(payload.get("content"), list):
        return ResponseShape.PAGE
    return ResponseShape.UNKNOWN


def _records(items: list[Any]) -> list[dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)]


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def decode_page(payload: Any) -> Page:
    """
    Normaliza cualquier respuesta de colección a Page.

    Args:
        payload: JSON ya parseado

    Returns:
        Page (vacía si la forma es desconocida)
    """
    shape = classify(payload)

    if shape == ResponseShape.ARRAY:
        content = _records(payload)
        return Page(
            content=content,
            total_elements=len(content),
            total_pages=1 if content else 0,
        )

    if shape == ResponseShape.PAGE:
        content = _records(payload["content"])
        number = _as_int(payload.get("number"), 0)
        total_pages = _as_int(payload.get("totalPages"), 1 if content else 0)
        return Page(
            content=content,
            total_elements=_as_int(payload.get("totalElements"), len(content)),
            total_pages=total_pages,
            number=number,
            first=bool(payload.get("first", number == 0)),
            last=bool(payload.get("last", number >= total_pages - 1)),
        )

    if payload not in (None, "", {}):
        logger.debug(f"Respuesta de colección con forma desconocida: {type(payload).__name__}")
    return Page()


def decode_collection(payload: Any) -> list[dict[str, Any]]:
    """Devuelve solo los registros de una respuesta de colección."""
    return decode_page(payload).content


def decode_url(payload: Any, *keys: str) -> str | None:
    """
    Extrae una URL de una respuesta que puede ser string u objeto.

    Args:
        payload: JSON ya parseado o texto
        keys: Claves a probar en orden (default: url, fileUrl, secure_url)

    Returns:
        La URL o None
    """
    if isinstance(payload, str):
        return payload.strip() or None

    if isinstance(payload, dict):
        for key in keys or ("url", "fileUrl", "secure_url"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    return None
