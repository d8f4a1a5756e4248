"""Manejo centralizado de errores y excepciones."""

import logging
import traceback
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Categorías de errores."""

    NETWORK = "network"
    BACKEND = "backend"
    VALIDATION = "validation"
    AUTH = "auth"
    NOTIFICATION = "notification"
    UPLOAD = "upload"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Contexto de un error para logging."""

    category: ErrorCategory
    operation: str
    error_type: str
    message: str
    details: dict[str, Any] | None = None
    traceback_str: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convierte a diccionario para logging."""
        return {
            "category": self.category.value,
            "operation": self.operation,
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class FinfluxError(Exception):
    """Excepción base para FinFlux Console."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class BackendError(FinfluxError):
    """El backend respondió con un error (4xx/5xx) o un payload inválido."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, ErrorCategory.BACKEND, details)
        self.status_code = status_code


class BackendUnavailableError(FinfluxError):
    """Timeout o fallo de conexión contra el backend."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.NETWORK, details)


class ValidationError(FinfluxError):
    """Error de validación de formulario."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, ErrorCategory.VALIDATION, details)
        self.field = field


class AuthError(FinfluxError):
    """Credenciales inválidas o sesión inexistente."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.AUTH, details)


class AccessDeniedError(FinfluxError):
    """El rol del usuario no tiene acceso al recurso."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.AUTH, details)


class NotificationError(FinfluxError):
    """Fallo al enviar una notificación (SMS/Telegram)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.NOTIFICATION, details)


class UploadError(FinfluxError):
    """Fallo al subir un archivo al backend o al host de assets."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCategory.UPLOAD, details)


def log_error(
    error: Exception,
    operation: str,
    category: ErrorCategory = ErrorCategory.UNKNOWN,
    extra: dict[str, Any] | None = None,
) -> ErrorContext:
    """
    Registra un error con contexto estructurado.

    Args:
        error: La excepción capturada
        operation: Nombre de la operación que falló
        category: Categoría del error
        extra: Información adicional

    Returns:
        ErrorContext con los detalles del error
    """
    if isinstance(error, FinfluxError):
        category = error.category
        details = {**(error.details or {}), **(extra or {})}
    else:
        details = extra or {}

    context = ErrorContext(
        category=category,
        operation=operation,
        error_type=type(error).__name__,
        message=str(error),
        details=details,
        traceback_str=traceback.format_exc(),
    )

    logger.error(
        f"Error en {operation}: {error}",
        extra={"error_context": context.to_dict()},
    )

    return context


def with_error_handling(
    operation: str,
    category: ErrorCategory = ErrorCategory.UNKNOWN,
    default_return: Any = None,
    reraise: bool = False,
):
    """
    Decorador para manejo uniforme de errores.

    Args:
        operation: Nombre de la operación para logging
        category: Categoría de error por defecto
        default_return: Valor a retornar en caso de error
        reraise: Si debe re-lanzar la excepción después de loguear
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except FinfluxError:
                raise
            except Exception as e:
                log_error(e, operation, category)
                if reraise:
                    raise FinfluxError(str(e), category) from e
                return default_return

        @wraps(func)
        def sync_wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except FinfluxError:
                raise
            except Exception as e:
                log_error(e, operation, category)
                if reraise:
                    raise FinfluxError(str(e), category) from e
                return default_return

        if hasattr(func, "__code__") and func.__code__.co_flags & 0x80:
            return async_wrapper
        return sync_wrapper

    return decorator

