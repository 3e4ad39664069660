"""
Política de reintentos para instalaciones de paquetes.

Solo se reintentan errores marcados como retryable (errores de red).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from puesto.core.errors import PuestoError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff exponencial acotado."""
    attempts: int = 5
    base_delay: float = 10.0
    backoff: float = 2.0
    max_delay: float = 300.0

    def delay_for(self, attempt: int) -> float:
        """Espera tras el intento número `attempt` (empezando en 1)."""
        delay = self.base_delay * (self.backoff ** max(attempt - 1, 0))
        return min(delay, self.max_delay)


NO_RETRY = RetryPolicy(attempts=1, base_delay=0.0)


def run_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Ejecuta fn reintentando mientras falle con un error reintentable

    Args:
        fn: Operación a ejecutar
        policy: Política de reintentos
        sleep: Función de espera (inyectable en tests)

    Returns:
        El valor de fn; el último error se propaga si se agotan los intentos
    """
    attempt = 1
    while True:
        try:
            return fn()
        except PuestoError as e:
            if not e.retryable or attempt >= policy.attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.info("Intento %d/%d falló (%s); reintentando en %.0fs",
                        attempt, policy.attempts, e, delay)
            sleep(delay)
            attempt += 1
