"""
Sistema de manejo de reintentos con backoff exponencial.

Este módulo implementa la política de reintentos usada por la sincronización
saliente hacia WooCommerce: solo los errores marcados como reintentables
(timeouts y fallos de red) se reintentan; el resto falla en el primer intento.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from app.utils.error_handler import AppException

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class RetryPolicy:
    """
    Política de reintentos configurable.

    ``max_retries`` cuenta reintentos, no intentos: una operación que siempre
    falla con un error reintentable se ejecuta ``max_retries + 1`` veces.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        exponential_base: float = 2.0,
        max_delay: Optional[float] = None,
        retry_on: Optional[List[Type[Exception]]] = None,
        stop_on: Optional[List[Type[Exception]]] = None,
    ):
        """
        Inicializa la política de reintentos.

        Args:
            max_retries: Número máximo de reintentos tras el primer intento
            base_delay: Delay base en segundos
            exponential_base: Base para backoff exponencial
            max_delay: Delay máximo en segundos (None = sin límite)
            retry_on: Excepciones no-AppException en las que reintentar
            stop_on: Excepciones que detienen inmediatamente
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.exponential_base = exponential_base
        self.max_delay = max_delay
        self.retry_on = retry_on or []
        self.stop_on = stop_on or []

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """
        Determina si debe reintentar la operación.

        Args:
            exception: Excepción que ocurrió
            attempt: Número de intento actual (empezando en 1)

        Returns:
            bool: True si debe reintentar
        """
        if attempt >= self.max_attempts:
            return False

        for stop_exc in self.stop_on:
            if isinstance(exception, stop_exc):
                return False

        if isinstance(exception, AppException):
            return exception.is_retryable

        for retry_exc in self.retry_on:
            if isinstance(exception, retry_exc):
                return True

        return False

    def calculate_delay(self, attempt: int) -> float:
        """
        Calcula el delay antes del siguiente intento.

        delay = base_delay × exponential_base^(attempt − 1)

        Args:
            attempt: Número del intento que acaba de fallar

        Returns:
            float: Segundos a esperar
        """
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        return max(delay, 0)


class RetryHandler:
    """
    Manejador de reintentos para llamadas asíncronas.
    """

    def __init__(
        self,
        name: str,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Inicializa el manejador de reintentos.

        Args:
            name: Nombre identificativo del handler
            retry_policy: Política de reintentos
            sleep: Función de espera (inyectable para tests)
        """
        self.name = name
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep

        self.metrics = {
            "total_attempts": 0,
            "total_successes": 0,
            "total_failures": 0,
            "total_retries": 0,
        }

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        context: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Any:
        """
        Ejecuta una corrutina con reintentos.

        Args:
            func: Función asíncrona a ejecutar
            *args: Argumentos posicionales
            context: Contexto adicional para logging
            **kwargs: Argumentos con nombre

        Returns:
            Any: Resultado de la función

        Raises:
            Exception: La última excepción si todos los intentos fallan o si
                el error no es reintentable
        """
        context = context or {}
        start_time = time.time()
        max_attempts = self.retry_policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            self.metrics["total_attempts"] += 1

            try:
                logger.debug(
                    f"Executing {self.name} - Attempt {attempt}/{max_attempts}",
                    extra={"context": context},
                )
                result = await func(*args, **kwargs)
                self.metrics["total_successes"] += 1
                logger.debug(
                    f"Successfully executed {self.name} in {time.time() - start_time:.2f}s",
                    extra={"attempt": attempt, "context": context},
                )
                return result

            except Exception as e:
                self.metrics["total_failures"] += 1

                if not self.retry_policy.should_retry(e, attempt):
                    if attempt >= max_attempts and self.retry_policy.should_retry(e, 0):
                        logger.error(
                            f"All retry attempts failed for {self.name}",
                            extra={"attempts": attempt, "last_exception": str(e), "context": context},
                        )
                    else:
                        logger.warning(
                            f"Not retrying {self.name} - Exception: {type(e).__name__}: {str(e)}",
                            extra={"attempt": attempt, "context": context},
                        )
                    raise

                delay = self.retry_policy.calculate_delay(attempt)
                self.metrics["total_retries"] += 1

                logger.info(
                    f"Retrying {self.name} in {delay:.2f}s - Attempt {attempt + 1}/{max_attempts}",
                    extra={"exception": str(e), "delay": delay, "context": context},
                )

                await self._sleep(delay)

        # range() no vacío: el bucle siempre retorna o relanza
        raise RuntimeError(f"Retry loop for {self.name} exited without result")

    def get_metrics(self) -> Dict[str, Any]:
        """
        Obtiene métricas del handler.

        Returns:
            Dict: Métricas actuales
        """
        total = self.metrics["total_attempts"]
        success_rate = (self.metrics["total_successes"] / total * 100) if total > 0 else 0

        return {
            **self.metrics,
            "success_rate": round(success_rate, 2),
            "handler_name": self.name,
        }


def create_woocommerce_retry_handler(
    max_retries: int, base_delay: float, sleep: Optional[SleepFunc] = None
) -> RetryHandler:
    """
    Crea un handler específico para llamadas al plugin de WooCommerce.

    Args:
        max_retries: Reintentos tras el primer intento
        base_delay: Delay base en segundos
        sleep: Función de espera opcional

    Returns:
        RetryHandler: Handler configurado
    """
    retry_policy = RetryPolicy(
        max_retries=max_retries,
        base_delay=base_delay,
        exponential_base=2.0,
    )
    return RetryHandler(name="woocommerce_sync", retry_policy=retry_policy, sleep=sleep)
