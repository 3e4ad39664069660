"""
Aplicación CLI de puesto.

Solo compone comandos; la lógica vive en core, resources y declarative.

Códigos de salida: 0 éxito, 1 algún recurso falló, 2 configuración inválida,
3 privilegios rechazados.
"""

from functools import partial
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from puesto import __version__
from puesto.cli.callbacks import RichConfirm, RichProgress
from puesto.cli.display import display_diffs, display_plan, display_status, display_summary
from puesto.cli.log import configure_logging
from puesto.core.errors import InvalidConfigError
from puesto.core.infra.base import AutoConfirm
from puesto.core.infra.contracts import ExecuteOptions
from puesto.core.project.detector import DiffSummary, compute_diffs
from puesto.core.project.executor import execute
from puesto.core.project.planner import build_plan
from puesto.core.runtime.resolver import config_path
from puesto.declarative.loader import Workspace, load_workspace
from puesto.system.privilege import acquire_privilege

EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="puesto",
    help="puesto - Configuración declarativa del puesto de trabajo",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Documento de configuración (por defecto: ~/.config/puesto/puesto.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Muestra cada comando externo"),
):
    """Detecta drift entre el documento de configuración y la máquina, y lo converge."""
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file)
    configure_logging(verbose, force=True)
    ctx.obj = {"config": config, "verbose": verbose}


def _load(ctx: typer.Context) -> Workspace:
    path = config_path(ctx.obj["config"])
    try:
        return load_workspace(path, console=console)
    except InvalidConfigError as e:
        console.print(f"[red]❌ Error al cargar {path}[/red]")
        console.print(f"[red]   {e.where}: {e.why}[/red]")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)


@app.command()
def status(ctx: typer.Context):
    """
    Resumen del drift (altas, bajas, modificaciones)

    Ejemplos:
        puesto status
        puesto -c ./puesto.yaml status
    """
    ws = _load(ctx)
    diffs = compute_diffs(ws.resources, ws.classifier)
    display_status(DiffSummary.from_diffs(diffs), console)


@app.command()
def diff(ctx: typer.Context):
    """
    Lista completa de diferencias, agrupadas por tipo

    Ejemplos:
        puesto diff
    """
    ws = _load(ctx)
    display_diffs(compute_diffs(ws.resources, ws.classifier), console)


@app.command()
def apply(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Modo simulación, no ejecuta acciones reales"),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación"),
    jobs: int = typer.Option(4, "--jobs", "-j", min=1, help="Recursos en paralelo (lote sin privilegios)"),
    target: Optional[str] = typer.Option(
        None, "--target", "-t", help="Filtro: tipo o tipo.fragmento (packages.rip, defaults, symlinks)"
    ),
):
    """
    Converge la máquina al documento de configuración

    Ejemplos:
        puesto apply --dry-run
        puesto apply --yes --jobs 8
        puesto apply --target packages.ripgrep
    """
    ws = _load(ctx)
    verbose = ctx.obj["verbose"]

    plan = build_plan(compute_diffs(ws.resources, ws.classifier), ws.classifier).filter_by_target(target)
    if plan.is_empty:
        console.print("[green]✅ Nada que aplicar[/green]")
        raise typer.Exit(code=0)

    if dry_run:
        display_plan(plan, console)

    summary = execute(
        plan,
        ExecuteOptions(dry_run=dry_run, parallelism=jobs, verbose=verbose),
        progress=RichProgress(console),
        confirm=AutoConfirm() if yes else RichConfirm(console),
        acquire_privilege=partial(acquire_privilege, runner=ws.runner, console=console),
        restart_service=ws.service_resource,
    )

    if dry_run:
        console.print("[cyan](dry-run) No se aplicó ningún cambio[/cyan]")
        raise typer.Exit(code=0)

    display_summary(summary, console)
    raise typer.Exit(code=summary.exit_code())


@app.command()
def version():
    """Muestra la versión de puesto"""
    console.print(Panel.fit(
        "[bold cyan]puesto[/bold cyan]\n"
        "[dim]Configuración declarativa del puesto de trabajo[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}\n"
        f"[bold]Configuración:[/bold] {config_path()}",
        border_style="cyan"
    ))


def main():
    app()
