"""
Presentación en terminal de diffs, planes y resúmenes.
"""

from typing import List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from puesto.core.project.detector import DiffSummary, ResourceDiff, group_by_kind
from puesto.core.project.planner import ExecutionPlan
from puesto.core.runtime.state import ExecuteSummary


def display_status(summary: DiffSummary, console: Console) -> None:
    """Resumen de diffs (puesto status)."""
    if not summary.has_changes:
        console.print("[green]✅ Sin drift. Estado deseado y actual coinciden.[/green]")
        return
    table = Table(title="Estado", show_header=True, header_style="bold cyan")
    table.add_column("Cambio", style="cyan")
    table.add_column("Recursos", justify="right")
    table.add_row("Altas", str(summary.additions))
    table.add_row("Bajas", str(summary.removals))
    table.add_row("Modificaciones", str(summary.modifications))
    table.add_row("Con privilegios", str(summary.privileged))
    if summary.failing:
        table.add_row("[red]Sin inspeccionar[/red]", f"[red]{summary.failing}[/red]")
    console.print(table)
    console.print("\n[dim]Usa 'puesto diff' para ver el detalle y 'puesto apply' para converger[/dim]")


def display_diffs(diffs: List[ResourceDiff], console: Console) -> None:
    """Una tabla por tipo de recurso (puesto diff)."""
    if not diffs:
        console.print("[green]✅ Sin drift. Estado deseado y actual coinciden.[/green]")
        return

    for kind, kind_diffs in group_by_kind(diffs).items():
        table = Table(title=f"Drift: {kind}", show_header=True, header_style="bold")
        table.add_column("Recurso", style="cyan")
        table.add_column("Actual", style="yellow")
        table.add_column("Deseado", style="green")
        table.add_column("sudo", justify="center")

        for d in kind_diffs:
            current = f"[red]error: {escape(str(d.error))}[/red]" if d.is_failing else escape(str(d.current))
            table.add_row(
                escape(d.resource_id),
                current,
                escape(str(d.desired)),
                "🔐" if d.privileged else "",
            )

        console.print(table)
        console.print()


def display_plan(plan: ExecutionPlan, console: Console) -> None:
    """Plan de ejecución (apply --dry-run)."""
    table = Table(title="Plan", show_header=True, header_style="bold cyan")
    table.add_column("Lote", style="cyan")
    table.add_column("Recurso")
    table.add_column("Descripción", style="dim")
    for r in plan.unprivileged:
        table.add_row("usuario", escape(r.id), escape(r.description))
    for r in plan.privileged:
        table.add_row("[yellow]sudo[/yellow]", escape(r.id), escape(r.description))
    for service in plan.post_actions:
        table.add_row("reinicio", escape(service), "")
    console.print(table)


def display_summary(summary: ExecuteSummary, console: Console) -> None:
    """Resumen final de apply, con el detalle de cada fallo."""
    table = Table(title="Resumen", show_header=True, header_style="bold cyan")
    table.add_column("Resultado", style="cyan")
    table.add_column("Recursos", justify="right")
    table.add_row("Creados", str(summary.created))
    table.add_row("Modificados", str(summary.modified))
    table.add_row("Eliminados", str(summary.removed))
    table.add_row("Omitidos", str(summary.skipped))
    table.add_row("Fallidos", f"[red]{summary.failed}[/red]" if summary.failed else "0")
    table.add_row("Sin cambios", str(summary.no_change))
    console.print(table)

    for failure in summary.failures:
        console.print(f"[red]✗ {escape(failure.resource_id)}[/red] [bold]{failure.error_kind}[/bold]: "
                      f"{escape(str(failure.error))}")
        if failure.stderr_tail:
            for line in failure.stderr_tail.splitlines():
                console.print(f"    [dim]{escape(line)}[/dim]")
        console.print(f"    [yellow]{escape(failure.error.advice)}[/yellow]")

    if summary.privilege_denied:
        console.print("[red]✘ No se obtuvieron privilegios; el lote privilegiado no se ejecutó[/red]")
