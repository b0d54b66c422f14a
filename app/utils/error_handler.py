"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas del puente
POS ⇄ WooCommerce y proporciona utilidades para manejo consistente de errores.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Errores de base de datos
    DATABASE_ERROR = "DATABASE_ERROR"

    # Errores de autenticación
    INVALID_API_KEY = "INVALID_API_KEY"
    REMOTE_AUTH_FAILED = "REMOTE_AUTH_FAILED"

    # Errores de sincronización con WooCommerce
    SYNC_DISABLED = "SYNC_DISABLED"
    SYNC_CONFLICT = "SYNC_CONFLICT"
    SYNC_REMOTE_FAULT = "SYNC_REMOTE_FAULT"
    SYNC_TIMEOUT = "SYNC_TIMEOUT"
    SYNC_NETWORK_ERROR = "SYNC_NETWORK_ERROR"

    # Errores de procesamiento de pedidos
    ORDER_PROCESSING_FAILED = "ORDER_PROCESSING_FAILED"
    INVALID_ORDER_DATA = "INVALID_ORDER_DATA"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
        is_critical: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
            is_critical: Si requiere alerta inmediata
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.is_critical = is_critical
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos entrantes.
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class DatabaseException(AppException):
    """
    Excepción para errores de conexión o consulta a la base de datos local.
    """

    def __init__(self, message: str, operation: str = "query", **kwargs):
        """
        Inicializa la excepción de base de datos.

        Args:
            message: Mensaje de error
            operation: Operación que falló (initialization, session, query)
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.DATABASE_ERROR,
            status_code=503,
            severity=ErrorSeverity.HIGH,
            is_critical=True,
            **kwargs,
        )
        self.operation = operation
        self.details.update({"operation": operation})


class NotFoundException(AppException):
    """
    Excepción para recursos inexistentes.
    """

    def __init__(self, message: str, resource: str, resource_id: Any, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.resource = resource
        self.resource_id = resource_id
        self.details.update({"resource": resource, "resource_id": str(resource_id)})


class AuthException(AppException):
    """
    Excepción para credenciales inválidas.

    Se usa tanto para el webhook entrante (X-API-Key incorrecta) como para
    respuestas 401/403 del plugin de WordPress. Nunca es reintentable.
    """

    def __init__(self, message: str, remote_status: Optional[int] = None, inbound: bool = False, **kwargs):
        """
        Inicializa la excepción de autenticación.

        Args:
            message: Mensaje de error
            remote_status: Código HTTP devuelto por el servicio remoto
            inbound: True si la credencial rechazada es la de una petición entrante
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_API_KEY if inbound else ErrorCode.REMOTE_AUTH_FAILED,
            status_code=401,
            severity=ErrorSeverity.LOW if inbound else ErrorSeverity.HIGH,
            is_retryable=False,
            is_critical=not inbound,
            **kwargs,
        )
        self.remote_status = remote_status
        self.inbound = inbound
        self.details.update({"remote_status": remote_status})


class ConflictException(AppException):
    """
    Excepción para colisiones de identificador único en el servicio remoto.
    """

    def __init__(self, message: str, identifier: Optional[str], raw_message: Optional[str] = None, **kwargs):
        """
        Inicializa la excepción de conflicto.

        Args:
            message: Mensaje de error
            identifier: Identificador en conflicto (normalmente el SKU)
            raw_message: Diagnóstico original devuelto por el servicio remoto
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.SYNC_CONFLICT,
            status_code=409,
            severity=ErrorSeverity.MEDIUM,
            is_retryable=False,
            **kwargs,
        )
        self.identifier = identifier
        self.raw_message = raw_message if raw_message is not None else message
        self.details.update({"identifier": identifier, "raw_message": self.raw_message})


class RemoteFaultException(AppException):
    """
    Excepción para fallos remotos no clasificados (5xx y 4xx distintos de auth).
    """

    def __init__(
        self,
        message: str,
        remote_status: Optional[int] = None,
        endpoint: Optional[str] = None,
        raw_body: Any = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de fallo remoto.

        Args:
            message: Mensaje de error
            remote_status: Código HTTP devuelto
            endpoint: Endpoint que falló
            raw_body: Cuerpo de la respuesta tal y como llegó
            **kwargs: Argumentos adicionales para AppException
        """
        severity = ErrorSeverity.HIGH if remote_status and remote_status >= 500 else ErrorSeverity.MEDIUM
        super().__init__(
            message=message,
            error_code=ErrorCode.SYNC_REMOTE_FAULT,
            status_code=502,
            severity=severity,
            is_retryable=False,
            **kwargs,
        )
        self.remote_status = remote_status
        self.endpoint = endpoint
        self.raw_body = raw_body
        self.details.update({"remote_status": remote_status, "endpoint": endpoint})


class TransientException(AppException):
    """
    Excepción para fallos transitorios (timeout o red). Es reintentable.
    """

    def __init__(self, message: str, endpoint: Optional[str] = None, timed_out: bool = False, **kwargs):
        """
        Inicializa la excepción transitoria.

        Args:
            message: Mensaje de error
            endpoint: Endpoint invocado
            timed_out: True si el fallo fue por timeout
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.SYNC_TIMEOUT if timed_out else ErrorCode.SYNC_NETWORK_ERROR,
            status_code=504 if timed_out else 503,
            severity=ErrorSeverity.MEDIUM,
            is_retryable=True,
            **kwargs,
        )
        self.endpoint = endpoint
        self.timed_out = timed_out
        self.details.update({"endpoint": endpoint, "timed_out": timed_out})


class SyncDisabledException(AppException):
    """
    Excepción para operaciones de sincronización con la integración deshabilitada.
    """

    def __init__(self, message: str = "WooCommerce sync is disabled or not configured", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.SYNC_DISABLED,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class ProcessingException(AppException):
    """
    Excepción para fallos en los efectos secundarios de un pedido ya persistido.
    """

    def __init__(self, message: str, order_id: Optional[int] = None, stage: Optional[str] = None, **kwargs):
        """
        Inicializa la excepción de procesamiento.

        Args:
            message: Mensaje de error
            order_id: ID externo del pedido
            stage: Etapa del pipeline que falló
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.ORDER_PROCESSING_FAILED,
            status_code=500,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.order_id = order_id
        self.stage = stage
        self.details.update({"order_id": order_id, "stage": stage})


# === FUNCIONES DE UTILIDAD ===


def create_error_response(exception: Exception) -> Dict[str, Any]:
    """
    Crea respuesta de error estandardizada.

    Args:
        exception: Excepción a convertir

    Returns:
        Dict: Respuesta de error
    """
    if isinstance(exception, AppException):
        error_dict = exception.to_dict()
    else:
        error_dict = AppException(
            message=f"{type(exception).__name__}: {exception}",
            details={"original_exception": type(exception).__name__},
        ).to_dict()

    return {"success": False, "error": True, **error_dict}


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        "traceback": traceback.format_exc(),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
                "is_critical": exception.is_critical,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra=log_data)
