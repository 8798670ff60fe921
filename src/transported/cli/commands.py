"""CLI commands for TransportEd operators.

Commands:
- init-db: Create the database schema
- create-user: Create an account with a confirmed email
- confirm-user: Confirm an existing account's email
- set-role: Promote or demote a user
- modules: List learning modules
- analytics: Admin analytics report
- serve: Run the Web API
"""

import os

import typer
from rich.console import Console

from transported.config import clear_config_cache, configure_logging, load_app_config
from transported.config.app_config import ENV_DB_PATH, ENV_SECRET_KEY
from transported.core.analytics import load_admin_analytics
from transported.core.auth import (
    AuthValidationError,
    DuplicateUserError,
    UserNotFoundError,
    confirm_user as do_confirm_user,
    create_user as do_create_user,
    set_role as do_set_role,
)
from transported.core.catalog import CatalogValidationError
from transported.core.catalog import list_modules as list_catalog_modules
from transported.db import init_db as do_init_db
from transported.db import modules_repository

app = typer.Typer(
    name="transported",
    help="TransportEd: learning modules, quizzes and progress tracking.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    db: str | None = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Set up logging and the database for every command."""
    if db:
        os.environ[ENV_DB_PATH] = db
        clear_config_cache()
    configure_logging()
    do_init_db()


@app.command(name="init-db")
def init_db() -> None:
    """Create the database schema (idempotent)."""
    console.print(f"[green]✓ Database ready:[/green] {load_app_config().database.path}")


@app.command(name="create-user")
def create_user(
    email: str = typer.Argument(..., help="Account email"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Account password"
    ),
    admin: bool = typer.Option(False, "--admin", help="Give the account the admin role"),
) -> None:
    """Create an account with a confirmed email."""
    try:
        user, profile = do_create_user(email, password, name)
        if admin:
            profile = do_set_role(user.email, "admin")
    except DuplicateUserError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(code=1)
    except AuthValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ User created and confirmed[/green]")
    console.print(f"  [dim]user_id:[/dim] {user.id}")
    console.print(f"  [dim]email:[/dim]   {user.email}")
    console.print(f"  [dim]name:[/dim]    {profile.name}")
    console.print(f"  [dim]role:[/dim]    {profile.role}")


@app.command(name="confirm-user")
def confirm_user(
    email: str = typer.Argument(..., help="Account email"),
) -> None:
    """Confirm an existing account's email."""
    try:
        user = do_confirm_user(email)
    except UserNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ User confirmed:[/green] {user.email}")
    console.print(f"  [dim]confirmed_at:[/dim] {user.email_confirmed_at}")


@app.command(name="set-role")
def set_role(
    email: str = typer.Argument(..., help="Account email"),
    role: str = typer.Argument(..., help="Role: student or admin"),
) -> None:
    """Change a user's role."""
    try:
        profile = do_set_role(email, role)
    except (AuthValidationError, UserNotFoundError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {profile.email} is now {profile.role}[/green]")


@app.command()
def modules(
    category: str | None = typer.Option(None, "--category", "-c", help="Filter by category"),
) -> None:
    """List learning modules."""
    from rich.table import Table

    try:
        rows = list_catalog_modules(category=category)
    except CatalogValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if not rows:
        console.print("[yellow]No modules found[/yellow]")
        return

    table = Table(title="Modules")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Questions", justify="right")
    table.add_column("Resources")

    for module in rows:
        table.add_row(
            module.id,
            module.title,
            module.category,
            str(modules_repository.count_questions(module.id)),
            ", ".join(module.resources) or "-",
        )

    console.print(table)


@app.command()
def analytics() -> None:
    """Show the admin analytics report."""
    from rich.panel import Panel
    from rich.table import Table

    report = load_admin_analytics()
    overview = report.overview

    console.print(
        Panel(
            f"Students: {overview.total_students}  "
            f"Active ({load_app_config().analytics.active_window_days}d): "
            f"{overview.active_students}  "
            f"Avg progress: {overview.average_progress:.1f}%  "
            f"Attempts: {overview.total_attempts}",
            title="Overview",
        )
    )

    students = Table(title="Student progress")
    students.add_column("Student")
    students.add_column("Email", style="dim")
    students.add_column("Completed", justify="right")
    students.add_column("Progress", justify="right")
    students.add_column("Avg score", justify="right")
    students.add_column("Attempts", justify="right")
    students.add_column("Last activity", style="dim")
    for row in report.students:
        students.add_row(
            row.student_name,
            row.student_email or "-",
            f"{row.completed_modules}/{row.total_modules}",
            f"{row.progress_percentage:.0f}%",
            f"{row.average_score:.1f}",
            str(row.total_attempts),
            row.last_activity[:10],
        )
    console.print(students)

    module_table = Table(title="Module performance")
    module_table.add_column("Module")
    module_table.add_column("Completions", justify="right")
    module_table.add_column("Attempts", justify="right")
    module_table.add_column("Avg score", justify="right")
    for row in report.modules:
        module_table.add_row(
            row.module_title,
            str(row.total_completions),
            str(row.total_attempts),
            f"{row.average_score:.1f}",
        )
    console.print(module_table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    if load_app_config().auth.secret_key_generated:
        console.print(
            f"[yellow]⚠ {ENV_SECRET_KEY} is not set; tokens are signed with a per-process key "
            "and stop working after a restart or reload[/yellow]"
        )

    console.print(f"[blue]Serving TransportEd on http://{host}:{port}[/blue]")
    uvicorn.run("transported.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
