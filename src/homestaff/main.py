"""
HomeStaff - CLI Entry Point.

Usage:
    homestaff presets                 List onboarding presets
    homestaff resolve p1              Show the rule a holiday preset produces
    homestaff health                  Check configuration
    homestaff serve                   Start the API server
    homestaff --help                  Show help
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="homestaff",
    help="HomeStaff - household staff management backend.",
    add_completion=False,
)
console = Console()


@app.command()
def presets() -> None:
    """List holiday and attendance presets offered during onboarding."""
    from onboarding.presets import get_onboarding_presets

    catalog = get_onboarding_presets()
    for title, key in (("Holiday Rules", "holiday_rules"), ("Attendance", "attendance")):
        table = Table(title=title)
        table.add_column("ID", style="bold")
        table.add_column("Label")
        table.add_column("Description", style="dim")
        for option in catalog[key]:
            table.add_row(option["id"], option["label"], option["description"])
        console.print(table)


@app.command()
def resolve(
    preset_id: str = typer.Argument(..., help="Preset ID (p1, p2, p3, a1, a2)"),
) -> None:
    """Show what a preset resolves to."""
    from onboarding.errors import UnknownPresetError
    from onboarding.presets import is_attendance_preset, resolve_attendance_preset, resolve_holiday_preset

    try:
        if is_attendance_preset(preset_id):
            console.print(f"tracking_method: [bold]{resolve_attendance_preset(preset_id)}[/bold]")
            return
        pattern = resolve_holiday_preset(preset_id)
    except UnknownPresetError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if pattern is None:
        console.print("[dim]Custom preset: no rule is created; configure one later.[/dim]")
        return
    console.print_json(json.dumps(pattern.model_dump(mode="json", exclude_none=True)))


@app.command()
def health() -> None:
    """Check configuration."""
    from homestaff.config import get_settings

    console.print("\n[bold]HomeStaff Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.homestaff_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.supabase_url.startswith("https://"):
            console.print("[green]OK[/green] Supabase URL configured")
        else:
            console.print("[red]FAIL[/red] Supabase URL missing or invalid")
            raise typer.Exit(1)

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from homestaff import __version__

    console.print(f"HomeStaff version {__version__}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the API server."""
    import os

    import uvicorn

    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]HomeStaff API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "homestaff.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


@app.command()
def db() -> None:
    """Check database connection and tables."""
    from homestaff.db.client import get_service_client

    console.print("\n[bold]Database Connection Check[/bold]\n")

    try:
        client = get_service_client()
        console.print("[green]OK[/green] Connected to Supabase")

        tables = [
            "profiles",
            "households",
            "members",
            "invitations",
            "employees",
            "employments",
            "household_holiday_rules",
            "household_attendance_settings",
            "onboarding_progress",
        ]

        console.print("\n[bold]Table Status:[/bold]")
        for table in tables:
            try:
                result = client.table(table).select("*", count="exact").limit(0).execute()
                count = result.count if hasattr(result, "count") else "?"
                console.print(f"  [green]OK[/green] {table}: {count} rows")
            except Exception as e:
                console.print(f"  [red]FAIL[/red] {table}: {e}")

        console.print("\n[green]Database check complete![/green]")

    except Exception as e:
        console.print(f"\n[red]FAIL Database connection failed: {e}[/red]")
        raise typer.Exit(1)


@app.command("reset-onboarding")
def reset_onboarding(
    user_id: str = typer.Argument(None, help="User ID (defaults to DEV_USER_ID)"),
) -> None:
    """Delete a user's onboarding progress so the wizard starts over."""
    from homestaff.config import settings
    from homestaff.db.client import get_service_client
    from homestaff.db.errors import StoreError
    from homestaff.db.progress import reset_onboarding_progress
    from homestaff.observability import setup_logging

    setup_logging(settings.log_level)
    target = user_id or settings.dev_user_id

    try:
        asyncio.run(reset_onboarding_progress(get_service_client(), target))
    except StoreError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] Onboarding reset for {target}")


if __name__ == "__main__":
    app()
