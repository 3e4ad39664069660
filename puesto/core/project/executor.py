"""
Ejecución del plan.

Fases, en orden estricto:

1. Re-inspección de ambos lotes (el plan puede ser antiguo).
2. Salida temprana si no hay diffs.
3. Confirmación ("Apply changes?") salvo en dry-run.
4. Cortocircuito de dry-run.
5. Lote sin privilegios en paralelo (los recursos no paralelizables, al final y en serie).
6. Lote privilegiado en serie dentro de un contexto de privilegios que se libera siempre.
7. Reinicios de servicios (post_actions) de los recursos que cambiaron; sus fallos no son fatales.

Ninguna excepción cruza el límite de un lote: cada apply termina en un ApplyResult.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, ContextManager, List, Optional

from puesto.core.errors import PrivilegeDeniedError, PuestoError
from puesto.core.infra.base import AutoConfirm, NoProgress
from puesto.core.infra.contracts import (
    ApplyContext,
    ConfirmCallback,
    ExecuteOptions,
    PrivilegeRunner,
    ProgressCallback,
    Resource,
)
from puesto.core.project.detector import ResourceDiff, compute_diffs
from puesto.core.project.planner import ExecutionPlan
from puesto.core.runtime.state import ApplyResult, ExecuteSummary

logger = logging.getLogger(__name__)

APPLY_PROMPT = "Apply changes?"
PRIVILEGE_REASON = "Apply privileged system configuration"

AcquirePrivilege = Callable[[str], ContextManager[PrivilegeRunner]]
ServiceFactory = Callable[[str], Resource]


class SynchronizedProgress:
    """Envuelve un ProgressCallback para que los hilos no lo llamen a la vez."""

    def __init__(self, inner: ProgressCallback):
        self._inner = inner
        self._lock = threading.Lock()

    def on_batch_start(self, count: int, privileged: bool) -> None:
        with self._lock:
            self._inner.on_batch_start(count, privileged)

    def on_resource_start(self, resource_id: str, description: str) -> None:
        with self._lock:
            self._inner.on_resource_start(resource_id, description)

    def on_resource_complete(self, resource_id: str, result: ApplyResult) -> None:
        with self._lock:
            self._inner.on_resource_complete(resource_id, result)

    def on_batch_complete(self) -> None:
        with self._lock:
            self._inner.on_batch_complete()

    def on_privilege_boundary(self, descriptions: List[str]) -> None:
        hook = getattr(self._inner, "on_privilege_boundary", None)
        if hook is not None:
            with self._lock:
                hook(descriptions)


def apply_one(resource: Resource, ctx: ApplyContext, error: Optional[PuestoError] = None) -> ApplyResult:
    """Aplica un recurso y traduce cualquier excepción a un resultado Failed."""
    if error is not None:
        return ApplyResult.failed(error)
    try:
        return resource.apply(ctx)
    except PuestoError as e:
        return ApplyResult.failed(e)
    except Exception as e:
        logger.debug("Error inesperado en %s", resource.id, exc_info=True)
        return ApplyResult.failed(PuestoError(f"{type(e).__name__}: {e}"))


def _run_tracked(diff: ResourceDiff, ctx: ApplyContext, progress: ProgressCallback) -> ApplyResult:
    progress.on_resource_start(diff.resource_id, diff.description)
    result = apply_one(diff.resource, ctx, diff.error)
    progress.on_resource_complete(diff.resource_id, result)
    return result


def run_batch(
    diffs: List[ResourceDiff],
    ctx: ApplyContext,
    parallelism: int,
    progress: ProgressCallback,
    privileged: bool = False,
) -> ExecuteSummary:
    """
    Ejecuta un lote

    Args:
        diffs: Diffs del lote
        ctx: Contexto que recibe cada apply
        parallelism: Número máximo de hilos (1 = en serie)
        progress: Callback de progreso (ya sincronizado)
        privileged: Si es el lote privilegiado (solo informativo)

    Returns:
        Resumen del lote
    """
    summary = ExecuteSummary()
    progress.on_batch_start(len(diffs), privileged)

    parallel: List[ResourceDiff] = []
    sequential: List[ResourceDiff] = []
    for d in diffs:
        if parallelism > 1 and d.resource.parallel_safe:
            parallel.append(d)
        else:
            sequential.append(d)

    if parallel:
        with ThreadPoolExecutor(max_workers=parallelism) as pool:
            futures = {pool.submit(_run_tracked, d, ctx, progress): d for d in parallel}
            for future in as_completed(futures):
                summary.add_result(futures[future].resource_id, future.result())

    for d in sequential:
        summary.add_result(d.resource_id, _run_tracked(d, ctx, progress))

    progress.on_batch_complete()
    return summary


def run_post_actions(
    services: List[str],
    restart_service: Optional[ServiceFactory],
    progress: ProgressCallback,
    verbose: bool = False,
) -> None:
    """Reinicia servicios en serie; los fallos individuales solo se registran."""
    if not services:
        return
    if restart_service is None:
        logger.warning("Sin gestor de servicios; se omiten reinicios: %s", ", ".join(services))
        return
    ctx = ApplyContext(dry_run=False, verbose=verbose)
    for name in services:
        resource = restart_service(name)
        progress.on_resource_start(resource.id, resource.description)
        result = apply_one(resource, ctx)
        progress.on_resource_complete(resource.id, result)
        if not result.is_success:
            logger.warning("No se pudo reiniciar %s (puede que no esté en ejecución): %s", name, result.error)


def execute(
    plan: ExecutionPlan,
    opts: Optional[ExecuteOptions] = None,
    progress: Optional[ProgressCallback] = None,
    confirm: Optional[ConfirmCallback] = None,
    acquire_privilege: Optional[AcquirePrivilege] = None,
    restart_service: Optional[ServiceFactory] = None,
) -> ExecuteSummary:
    """
    Ejecuta un plan y devuelve el resumen

    Args:
        plan: Plan particionado (y ya filtrado)
        opts: Opciones (dry_run, parallelism, verbose)
        progress: Callback de progreso; se sincroniza internamente
        confirm: Callback de confirmación
        acquire_privilege: Fábrica de contextos de privilegio (context manager)
        restart_service: Fábrica de recursos de servicio para post_actions

    Returns:
        ExecuteSummary con los contadores por resultado
    """
    opts = opts or ExecuteOptions()
    progress = SynchronizedProgress(progress or NoProgress())
    confirm = confirm or AutoConfirm()

    unprivileged = compute_diffs(plan.unprivileged)
    privileged = compute_diffs(plan.privileged)
    total = len(unprivileged) + len(privileged)

    if total == 0:
        logger.info("Sin cambios pendientes")
        return ExecuteSummary()

    if not opts.dry_run and not confirm.confirm(APPLY_PROMPT):
        return ExecuteSummary(skipped=total)

    if opts.dry_run:
        return ExecuteSummary()

    summary = ExecuteSummary()
    if unprivileged:
        ctx = ApplyContext(dry_run=False, verbose=opts.verbose)
        summary.merge(run_batch(unprivileged, ctx, opts.parallelism, progress))

    if privileged:
        summary.merge(_run_privileged(privileged, bool(unprivileged), opts, progress, confirm, acquire_privilege))

    # Solo se reinician servicios de recursos que cambiaron de verdad
    changed = set(summary.changed)
    restarts = plan.filter(lambda r: r.id in changed).post_actions
    run_post_actions(restarts, restart_service, progress, opts.verbose)
    return summary


def _run_privileged(
    diffs: List[ResourceDiff],
    already_confirmed_batch: bool,
    opts: ExecuteOptions,
    progress: SynchronizedProgress,
    confirm: ConfirmCallback,
    acquire_privilege: Optional[AcquirePrivilege],
) -> ExecuteSummary:
    summary = ExecuteSummary()
    progress.on_privilege_boundary([d.description for d in diffs])

    # Si ya corrió el lote sin privilegios, se vuelve a preguntar antes de elevar
    if already_confirmed_batch:
        prompt = f"Apply {len(diffs)} privileged change(s)?"
        if not confirm.confirm(prompt):
            summary.skipped += len(diffs)
            return summary

    if acquire_privilege is None:
        logger.error("No hay proveedor de privilegios configurado")
        summary.skipped += len(diffs)
        summary.privilege_denied = True
        return summary

    try:
        with acquire_privilege(PRIVILEGE_REASON) as runner:
            ctx = ApplyContext(dry_run=False, verbose=opts.verbose, privileged_runner=runner)
            summary.merge(run_batch(diffs, ctx, 1, progress, privileged=True))
    except PrivilegeDeniedError as e:
        logger.error("Privilegios denegados: %s", e)
        summary.skipped += len(diffs)
        summary.privilege_denied = True
    return summary
