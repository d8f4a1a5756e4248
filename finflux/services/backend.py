"""Cliente HTTP para el backend REST de FinFlux."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from finflux.config import get_settings
from finflux.utils.errors import (
    BackendError,
    BackendUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)
settings = get_settings()


def build_org_endpoint(base_url: str, org_id: str | None, path: str = "") -> str:
    """
    Construye un endpoint scoped a la organización.

    Args:
        base_url: URL base del backend
        org_id: ID de la organización
        path: Sub-ruta (ej. "/products/42")

    Returns:
        "{base}/api/organizations/{orgId}{path}"
    """
    if not org_id:
        raise ValidationError("No organization selected.", field="organizationId")
    if path and not path.startswith("/"):
        path = f"/{path}"
    return f"{base_url.rstrip('/')}/api/organizations/{quote(str(org_id), safe='')}{path}"


def _backend_message(response: httpx.Response) -> str | None:
    """Extrae el mensaje de error que envía el backend, si existe."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:300] or None

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(body, str) and body:
        return body
    return None


class BackendClient:
    """
    Cliente async contra /api/organizations/{orgId}/...

    Uso:
        client = BackendClient(org_id="ORG-1", token="...")
        products = await client.get_json("/products")
        await client.close()
    """

    def __init__(
        self,
        org_id: str | None = None,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.org_id = org_id
        self.base_url = base_url if base_url is not None else settings.api_base_url
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._transport = transport
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.request_timeout,
            headers=headers,
            transport=transport,
        )

    def url(self, path: str = "") -> str:
        """URL absoluta para una sub-ruta de la organización."""
        return build_org_endpoint(self.base_url, self.org_id, path)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> Any:
        """
        Ejecuta un request y devuelve el cuerpo decodificado.

        Args:
            client: Cliente alternativo (ej. sin Authorization para hosts externos)

        Raises:
            BackendUnavailableError: timeout o fallo de conexión
            BackendError: status >= 400 o JSON malformado
        """
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug(f"{method} {url} params={params}")

        try:
            response = await (client or self._client).request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(
                "Request timed out", details={"url": url, "method": method}
            ) from e
        except httpx.TransportError as e:
            raise BackendUnavailableError(
                f"Could not reach backend: {e}", details={"url": url, "method": method}
            ) from e

        if response.status_code >= 400:
            backend_message = _backend_message(response)
            raise BackendError(
                backend_message or f"Backend responded {response.status_code}",
                status_code=response.status_code,
                details={"url": url, "method": method, "backend_message": backend_message},
            )

        if not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError as e:
                raise BackendError(
                    "Malformed response",
                    status_code=response.status_code,
                    details={"url": url},
                ) from e

        return response.text

    # ==================== Org-scoped ====================

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return await self.request("GET", self.url(path), params=params, timeout=timeout)

    async def post_json(self, path: str, payload: Any, params: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", self.url(path), json=payload, params=params)

    async def put_json(self, path: str, payload: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("PUT", self.url(path), json=payload, params=params)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", self.url(path))

    async def upload_file(
        self,
        path: str,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Any:
        """Sube un archivo multipart a un sub-recurso /upload."""
        return await self.request(
            "POST",
            self.url(path),
            files={"file": (filename, content, content_type)},
            timeout=settings.upload_timeout,
        )

    async def get_download_url(self, path: str, duration_seconds: int = 60) -> Any:
        """Pide al backend una URL firmada de descarga."""
        return await self.request(
            "GET",
            self.url(path),
            params={"durationSeconds": duration_seconds},
            timeout=settings.download_url_timeout,
        )

    # ==================== Absolutas ====================

    async def post_absolute(
        self,
        url: str,
        *,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return await self.request("POST", url, json=json, data=data, files=files, timeout=timeout)

    async def upload_external(
        self,
        url: str,
        filename: str,
        content: bytes,
        data: dict[str, Any] | None = None,
        content_type: str = "application/octet-stream",
    ) -> Any:
        """Sube un archivo a un host externo sin enviar el token de sesión."""
        async with httpx.AsyncClient(
            timeout=settings.upload_timeout, transport=self._transport
        ) as external:
            return await self.request(
                "POST",
                url,
                data=data,
                files={"file": (filename, content, content_type)},
                client=external,
            )

    async def close(self) -> None:
        await self._client.aclose()
