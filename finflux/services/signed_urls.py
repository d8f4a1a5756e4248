"""Reparación de URLs firmadas devueltas por el backend (GCS)."""

import logging
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

SIGNED_HEADERS_PARAM = "X-Goog-SignedHeaders"

_BROKEN_SIGNED_HEADERS = re.compile(r"hosthost|UNSIGNED-PAYLOAD")


def normalize_signed_url(url: str | None) -> str | None:
    """
    Corrige defectos conocidos de doble codificación en una URL firmada.

    - Colapsa %25 -> % en el path hasta que no quede ninguno.
    - Si X-Goog-SignedHeaders viene corrupto, lo reescribe a "host".

    Args:
        url: URL firmada

    Returns:
        URL reparada, o la original si no se puede parsear
    """
    if not url:
        return url

    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return url

        path = parts.path
        while "%25" in path:
            path = path.replace("%25", "%")

        params = parse_qsl(parts.query, keep_blank_values=True)
        repaired = []
        for key, value in params:
            if key.lower() == SIGNED_HEADERS_PARAM.lower():
                if _BROKEN_SIGNED_HEADERS.search(value):
                    value = "host"
                key = SIGNED_HEADERS_PARAM
            repaired.append((key, value))

        return urlunsplit((parts.scheme, parts.netloc, path, urlencode(repaired), parts.fragment))

    except ValueError as e:
        logger.warning(f"No se pudo normalizar URL firmada: {e}")
        return url
