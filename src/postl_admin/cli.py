"""Typer CLI for PosTL Admin."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from postl_admin.common.exceptions import PostlError

app = typer.Typer(name="postl", help="PosTL Admin: shop tenant management")
console = Console()


def _load_settings():
    from postl_admin.common.config import get_settings
    from postl_admin.common.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        settings.require_backend()
    except PostlError as e:
        console.print(f"[bold red]Config error:[/bold red] {e.message}")
        raise typer.Exit(1)
    return settings


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the PosTL Admin dashboard."""
    import uvicorn
    from postl_admin.app import create_app

    _load_settings()
    console.print(f"[bold green]Starting PosTL Admin on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def tenants(
    locked: bool = typer.Option(False, "--locked", help="Only locked or expired shops"),
    search: str = typer.Option("", "--search", "-s", help="Match name, owner or email"),
):
    """List shops (expired shops are reconciled first)."""
    from postl_admin.deps import close_clients, get_tenant_service
    from postl_admin.tenants.status import (
        VIEW_ALL, VIEW_LOCKED, filter_tenants, status_of, utcnow,
    )

    _load_settings()

    async def _run():
        try:
            return await get_tenant_service().load()
        finally:
            await close_clients()

    loaded = asyncio.run(_run())
    if loaded is None:
        console.print("[bold red]Could not load shops[/bold red] (see log)")
        raise typer.Exit(1)

    now = utcnow()
    shown = filter_tenants(loaded, VIEW_LOCKED if locked else VIEW_ALL, search, now)
    table = Table(title=f"Shops ({len(shown)}/{len(loaded)})")
    for column in ("Name", "Owner", "Email", "Status", "Expires"):
        table.add_column(column)
    for t in shown:
        table.add_row(
            t.name,
            t.owner_name or "---",
            t.email or "",
            status_of(t, now),
            t.expired_at.strftime("%d/%m/%Y") if t.expired_at else "-",
        )
    console.print(table)


@app.command()
def reconcile():
    """Run one reconciliation pass and report corrected shops."""
    from postl_admin.deps import close_clients, get_tenant_repository
    from postl_admin.tenants.status import reconcile as reconcile_tenants
    from postl_admin.tenants.status import stale_tenants

    _load_settings()

    async def _run():
        repository = get_tenant_repository()
        try:
            loaded = await repository.fetch_all()
            stale = stale_tenants(loaded)
            await reconcile_tenants(loaded, repository)
            return stale
        finally:
            await close_clients()

    try:
        stale = asyncio.run(_run())
    except PostlError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    if not stale:
        console.print("[bold green]Nothing to reconcile[/bold green]")
        return
    for t in stale:
        console.print(f"  deactivated [bold]{t.name}[/bold] ({t.id})")
    console.print(f"[bold yellow]{len(stale)} expired shop(s) deactivated[/bold yellow]")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check PosTL Admin server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
        if not data.get("admin_capabilities", True):
            console.print("[yellow]No service key: shop creation and password resets are disabled[/yellow]")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
