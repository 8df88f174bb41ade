"""
SDLC Backoffice CLI - Main command-line interface.

Server and database management commands, plus a terminal backoffice that
drives the API through the same controllers a UI would use.
"""

from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from sdlc_backoffice.logging_config import setup_logging

app = typer.Typer(
    name="sdlc-backoffice",
    help="SDLC Backoffice - manage projects, repositories, developments and webhook events",
    no_args_is_help=True,
)
projects_app = typer.Typer(help="Manage projects", no_args_is_help=True)
repos_app = typer.Typer(help="Manage a project's repositories", no_args_is_help=True)
developments_app = typer.Typer(help="Browse developments", no_args_is_help=True)
webhooks_app = typer.Typer(help="Browse webhook events", no_args_is_help=True)

app.add_typer(projects_app, name="projects")
app.add_typer(repos_app, name="repos")
app.add_typer(developments_app, name="developments")
app.add_typer(webhooks_app, name="webhooks")

console = Console()

API_URL_OPTION = typer.Option(
    None, "--api-url", envvar="BACKOFFICE_API_URL", help="Backoffice API base URL"
)


def _client(api_url: Optional[str]):
    from sdlc_backoffice.client import BackofficeClient

    return BackofficeClient(base_url=api_url)


def _notifier():
    from sdlc_backoffice.notifications import ConsoleNotifier

    return ConsoleNotifier(console)


def _fields(**values: Any) -> dict[str, Any]:
    """Drop options the operator did not pass."""
    return {k: v for k, v in values.items() if v is not None}


def _fmt(value: Any) -> str:
    return "-" if value is None else str(value)


# ===== Server & database =====


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    port: Optional[int] = typer.Option(None, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.

    Runs the backoffice CRUD API under /api.
    """
    import uvicorn

    from sdlc_backoffice.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    reload = reload or settings.api_reload

    console.print("[bold green]Starting SDLC Backoffice API server...[/bold green]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Reload: {reload}")
    console.print(f"\n  API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "sdlc_backoffice.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create missing tables and indexes.

    Safe to run repeatedly. Exits non-zero if any object cannot be created,
    e.g. a unique index over duplicate existing data.
    """
    from sdlc_backoffice.db.connection import engine
    from sdlc_backoffice.db.schema import bootstrap_schema, verify_schema
    from sdlc_backoffice.exceptions import BootstrapError

    setup_logging(context="cli")

    try:
        report = bootstrap_schema(engine)
    except BootstrapError as e:
        console.print(f"[bold red]Schema bootstrap failed:[/bold red] {e}")
        if e.object_name:
            console.print(f"  Offending object: [bold]{e.object_name}[/bold]")
        raise typer.Exit(1)

    table = Table(title="Schema bootstrap")
    table.add_column("Kind")
    table.add_column("Created", style="green")
    table.add_column("Already present", style="dim")
    table.add_row(
        "tables",
        ", ".join(report.created_tables) or "-",
        ", ".join(report.existing_tables) or "-",
    )
    table.add_row(
        "indexes",
        "\n".join(report.created_indexes) or "-",
        "\n".join(report.existing_indexes) or "-",
    )
    console.print(table)

    missing = verify_schema(engine)
    if missing:
        console.print(
            f"[bold red]Schema still incomplete:[/bold red] {', '.join(missing)}"
        )
        raise typer.Exit(1)

    if report.changed:
        console.print("[green]✓ Schema is up to date[/green]")
    else:
        console.print("[green]✓ Schema already up to date, nothing to do[/green]")


@app.command()
def seed() -> None:
    """Replace the ECOM sample project, webhook event and developments."""
    from sdlc_backoffice.db.connection import db_session
    from sdlc_backoffice.db.seed import seed_sample_data

    setup_logging(context="cli")

    with db_session() as session:
        result = seed_sample_data(session)
        project_id = result.project.id
        development_count = len(result.developments)

    console.print(f"[green]✓ Sample project created with ID: {project_id}[/green]")
    console.print("[green]✓ Sample webhook event created[/green]")
    console.print(
        f"[green]✓ Sample development records created ({development_count} records)[/green]"
    )


# ===== Projects =====


def _print_projects(projects) -> None:
    table = Table(title=f"Projects ({len(projects)})")
    table.add_column("ID", style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Repositories", justify="right")
    table.add_column("Updated")
    for p in projects:
        table.add_row(
            str(p.id),
            p.jira_project_key,
            p.name,
            str(len(p.repositories)),
            p.updated_at.isoformat(timespec="seconds"),
        )
    console.print(table)


def _print_project(project) -> None:
    console.print(f"[bold]{project.name}[/bold] ({project.jira_project_key})")
    console.print(f"  ID: {project.id}")
    console.print(f"  Description: {project.description}")
    console.print(f"  Scope: {project.scope}")
    console.print(f"  Tracker: {project.jira_project_name} <{project.jira_project_url}>")
    console.print(f"  Created: {project.created_at.isoformat(timespec='seconds')}")
    console.print(f"  Updated: {project.updated_at.isoformat(timespec='seconds')}")
    _print_repositories(project.repositories)


@projects_app.command("list")
def projects_list(api_url: Optional[str] = API_URL_OPTION) -> None:
    """List all projects."""
    from sdlc_backoffice.views import ProjectsController

    with _client(api_url) as client:
        controller = ProjectsController(client, _notifier())
        if not controller.load():
            raise typer.Exit(1)
    _print_projects(controller.projects)


@projects_app.command("show")
def projects_show(
    project_id: Optional[str] = typer.Argument(None, help="Project id"),
    key: Optional[str] = typer.Option(None, "--key", help="Look up by tracker key instead"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Show one project, by id or by tracker key."""
    from sdlc_backoffice.views import ProjectsController

    if not project_id and not key:
        console.print("[bold red]Error:[/bold red] Pass a project id or --key")
        raise typer.Exit(2)

    with _client(api_url) as client:
        controller = ProjectsController(client, _notifier())
        ok = (
            controller.load_project(project_id)
            if project_id
            else controller.find_by_jira_key(key)
        )
        if not ok:
            raise typer.Exit(1)
    _print_project(controller.selected)


@projects_app.command("create")
def projects_create(
    name: str = typer.Option(..., help="Project name"),
    description: str = typer.Option(..., help="Project description"),
    scope: str = typer.Option(..., help="Coding conventions and scope for the automation"),
    jira_project_key: str = typer.Option(..., "--key", help="Tracker project key"),
    jira_project_name: str = typer.Option(..., "--jira-name", help="Tracker project name"),
    jira_project_url: str = typer.Option(..., "--jira-url", help="Tracker project URL"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Create a project."""
    from sdlc_backoffice.views import ProjectsController

    with _client(api_url) as client:
        controller = ProjectsController(client, _notifier())
        project = controller.create(
            {
                "name": name,
                "description": description,
                "scope": scope,
                "jira_project_key": jira_project_key,
                "jira_project_name": jira_project_name,
                "jira_project_url": jira_project_url,
            }
        )
    if project is None:
        raise typer.Exit(1)
    console.print(f"  ID: {project.id}")


@projects_app.command("update")
def projects_update(
    project_id: str = typer.Argument(..., help="Project id"),
    name: Optional[str] = typer.Option(None, help="Project name"),
    description: Optional[str] = typer.Option(None, help="Project description"),
    scope: Optional[str] = typer.Option(None, help="Coding conventions and scope"),
    jira_project_key: Optional[str] = typer.Option(None, "--key", help="Tracker project key"),
    jira_project_name: Optional[str] = typer.Option(None, "--jira-name", help="Tracker project name"),
    jira_project_url: Optional[str] = typer.Option(None, "--jira-url", help="Tracker project URL"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Update the given fields of a project."""
    from sdlc_backoffice.views import ProjectsController

    changes = _fields(
        name=name,
        description=description,
        scope=scope,
        jira_project_key=jira_project_key,
        jira_project_name=jira_project_name,
        jira_project_url=jira_project_url,
    )
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(0)

    with _client(api_url) as client:
        controller = ProjectsController(client, _notifier())
        if not controller.update(project_id, changes):
            raise typer.Exit(1)


@projects_app.command("delete")
def projects_delete(
    project_id: str = typer.Argument(..., help="Project id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Delete a project and all of its repositories."""
    from sdlc_backoffice.views import ProjectsController

    if not yes:
        typer.confirm(f"Delete project {project_id} and its repositories?", abort=True)

    with _client(api_url) as client:
        controller = ProjectsController(client, _notifier())
        if not controller.delete(project_id):
            raise typer.Exit(1)


# ===== Repositories =====


def _print_repositories(repositories) -> None:
    table = Table(title=f"Repositories ({len(repositories)})")
    table.add_column("Repository ID", style="dim")
    table.add_column("URL")
    table.add_column("Branch")
    table.add_column("Description")
    for r in repositories:
        table.add_row(r.repository_id, r.url, r.base_branch, r.description)
    console.print(table)


@repos_app.command("list")
def repos_list(
    project_id: str = typer.Argument(..., help="Project id"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """List a project's repositories."""
    from sdlc_backoffice.views import RepositoriesController

    with _client(api_url) as client:
        controller = RepositoriesController(client, _notifier(), project_id)
        if not controller.load():
            raise typer.Exit(1)
    _print_repositories(controller.repositories)


@repos_app.command("add")
def repos_add(
    project_id: str = typer.Argument(..., help="Project id"),
    url: str = typer.Option(..., help="Clone URL (http or https)"),
    description: str = typer.Option(..., help="Repository description"),
    token: str = typer.Option(..., help="Git access token"),
    base_branch: Optional[str] = typer.Option(None, help="Base branch (default: main)"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Add a repository to a project."""
    from sdlc_backoffice.views import RepositoriesController

    with _client(api_url) as client:
        controller = RepositoriesController(client, _notifier(), project_id)
        repository_id = controller.add(
            _fields(
                url=url,
                description=description,
                git_access_token=token,
                base_branch=base_branch,
            )
        )
    if repository_id is None:
        raise typer.Exit(1)
    console.print(f"  Repository ID: {repository_id}")


@repos_app.command("update")
def repos_update(
    project_id: str = typer.Argument(..., help="Project id"),
    repository_id: str = typer.Argument(..., help="Repository id"),
    url: Optional[str] = typer.Option(None, help="Clone URL (http or https)"),
    description: Optional[str] = typer.Option(None, help="Repository description"),
    token: Optional[str] = typer.Option(None, help="Git access token"),
    base_branch: Optional[str] = typer.Option(None, help="Base branch"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Update the given fields of a repository."""
    from sdlc_backoffice.views import RepositoriesController

    changes = _fields(
        url=url, description=description, git_access_token=token, base_branch=base_branch
    )
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(0)

    with _client(api_url) as client:
        controller = RepositoriesController(client, _notifier(), project_id)
        if not controller.update(repository_id, changes):
            raise typer.Exit(1)


@repos_app.command("delete")
def repos_delete(
    project_id: str = typer.Argument(..., help="Project id"),
    repository_id: str = typer.Argument(..., help="Repository id"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Remove a repository from a project."""
    from sdlc_backoffice.views import RepositoriesController

    with _client(api_url) as client:
        controller = RepositoriesController(client, _notifier(), project_id)
        if not controller.delete(repository_id):
            raise typer.Exit(1)


# ===== Developments =====

STATUS_STYLES = {"ready": "yellow", "completed": "green", "failed": "red"}


@developments_app.command("list")
def developments_list(
    key: Optional[str] = typer.Option(None, "--key", help="Filter by tracker project key"),
    project_id: Optional[str] = typer.Option(None, help="Filter by project id"),
    status: Optional[str] = typer.Option(None, help="ready, completed or failed"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """List developments, newest first."""
    from sdlc_backoffice.views import DevelopmentsController

    with _client(api_url) as client:
        controller = DevelopmentsController(client, _notifier())
        if not controller.load(key, project_id, status):
            raise typer.Exit(1)

    table = Table(title=f"Developments ({len(controller.developments)})")
    table.add_column("ID", style="dim")
    table.add_column("Issue", style="bold")
    table.add_column("Status")
    table.add_column("Branch")
    table.add_column("Created")
    for d in controller.developments:
        style = STATUS_STYLES.get(d.status.value, "white")
        table.add_row(
            str(d.id),
            d.jira_issue_key,
            f"[{style}]{d.status.value}[/{style}]",
            _fmt(d.branch_name),
            d.created_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@developments_app.command("show")
def developments_show(
    development_id: str = typer.Argument(..., help="Development id"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Show one development."""
    from sdlc_backoffice.views import DevelopmentsController

    with _client(api_url) as client:
        controller = DevelopmentsController(client, _notifier())
        if not controller.load_development(development_id):
            raise typer.Exit(1)

    d = controller.selected
    console.print(f"[bold]{d.jira_issue_key}[/bold] {_fmt(d.summary)}")
    console.print(f"  Status: {d.status.value}")
    console.print(f"  Project: {d.jira_project_key} ({d.project_id})")
    console.print(f"  Repository: {d.repository_url}")
    console.print(f"  Branch: {_fmt(d.branch_name)}")
    console.print(f"  PR/MR: {_fmt(d.pr_mr_url)}")
    console.print(f"  Created: {d.created_at.isoformat(timespec='seconds')}")
    console.print(f"  Completed: {_fmt(d.completed_at)}")
    if d.development_details:
        console.print(f"\n[bold]Details[/bold]\n{d.development_details}")
    if d.error_message:
        console.print(f"\n[bold red]Error[/bold red]\n{d.error_message}")


# ===== Webhook events =====


@webhooks_app.command("list")
def webhooks_list(
    key: Optional[str] = typer.Option(None, "--key", help="Filter by tracker project key"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """List webhook events, most recently received first."""
    from sdlc_backoffice.views import WebhookEventsController

    with _client(api_url) as client:
        controller = WebhookEventsController(client, _notifier())
        if not controller.load(key):
            raise typer.Exit(1)

    table = Table(title=f"Webhook events ({len(controller.events)})")
    table.add_column("ID", style="dim")
    table.add_column("Issue", style="bold")
    table.add_column("Event")
    table.add_column("Status")
    table.add_column("Received")
    table.add_column("Processed")
    for e in controller.events:
        table.add_row(
            str(e.id),
            e.jira_issue_key,
            e.event_type,
            f"{_fmt(e.previous_status)} → {e.status}",
            e.received_at.isoformat(timespec="seconds"),
            _fmt(e.processed_at),
        )
    console.print(table)


@webhooks_app.command("show")
def webhooks_show(
    event_id: str = typer.Argument(..., help="Webhook event id"),
    api_url: Optional[str] = API_URL_OPTION,
) -> None:
    """Show one webhook event, raw payload included."""
    from rich.json import JSON

    from sdlc_backoffice.views import WebhookEventsController

    with _client(api_url) as client:
        controller = WebhookEventsController(client, _notifier())
        if not controller.load_event(event_id):
            raise typer.Exit(1)

    e = controller.selected
    console.print(f"[bold]{e.jira_issue_key}[/bold] {e.summary}")
    console.print(f"  Event: {e.event_type}")
    console.print(f"  Status: {_fmt(e.previous_status)} → {e.status}")
    console.print(f"  Received: {e.received_at.isoformat(timespec='seconds')}")
    console.print(f"  Processed: {_fmt(e.processed_at)}")
    if e.description:
        console.print(f"\n{e.description}")
    if e.raw_payload is not None:
        console.print("\n[bold]Raw payload[/bold]")
        console.print(JSON.from_data(e.raw_payload))


if __name__ == "__main__":
    app()
