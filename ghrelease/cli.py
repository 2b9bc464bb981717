from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .auth import CredentialResolver, EnvironmentDecrypter, PlainTextDecrypter, Server
from .config import Config, ReleaseConfig, DEFAULT_SERVER_ID
from .errors import ReleaseError
from .fileset import FileSet
from .release import ReleaseUploader
from .repository import compute_repository_id
from .versioning import guess_prerelease


LOG_LEVEL_ENV_VAR = "GHRELEASE_LOG_LEVEL"

app = typer.Typer(name="ghrelease", help="ghrelease CLI: publish build artifacts to GitHub releases.", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    # GHRELEASE_LOG_LEVEL wins over --verbose
    log_level = os.getenv(LOG_LEVEL_ENV_VAR, "INFO" if verbose else "WARNING")
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
    )


def _load_config(config_path: Optional[Path]) -> Config:
    if config_path:
        return Config(config_path=config_path, enable_hierarchy=True)
    return Config.load_with_repo_context()


def _load_settings(settings_path: Optional[Path]) -> Config:
    if settings_path:
        return Config(config_path=settings_path, enable_hierarchy=False)
    return Config(enable_hierarchy=False)


def cmd_upload(
    overrides: Dict[str, Any],
    config_path: Optional[Path],
    settings_path: Optional[Path],
    dry_run: bool,
    expand_env: bool = False,
) -> int:
    try:
        config = _load_config(config_path)
        release_config = ReleaseConfig.from_config(config, overrides, cwd=Path.cwd())
        # Server entries may come from the project file as well as the settings file
        settings = _load_settings(settings_path) if settings_path else config
        decrypter = EnvironmentDecrypter() if expand_env else PlainTextDecrypter()
        uploader = ReleaseUploader(release_config, resolver=CredentialResolver(settings, decrypter=decrypter))
        result = uploader.execute(dry_run=dry_run)
    except (ReleaseError, OSError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 1
    except Exception as e:  # noqa: BLE001
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        return 2

    title = "Dry run complete" if result.dry_run else f"Release {result.release.name} created"
    console.print(f"[green]{title}[/green]")
    if result.deleted_release:
        console.print("  Replaced an existing release")
    console.print(f"  Uploaded: {len(result.uploaded)}")
    for name in result.uploaded:
        marker = " (replaced)" if name in result.replaced else ""
        console.print(f"  [green]•[/green] {name}{marker}")
    if result.skipped:
        console.print(f"  [yellow]Skipped (already present):[/yellow] {len(result.skipped)}")
        for name in result.skipped:
            console.print(f"  [yellow]•[/yellow] {name}")
    return 0


@app.command("upload", help="Create a release for a tag and upload artifacts to it")
def upload_command(
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Tag the release is based on (default: project version)"),
    repository_id: Optional[str] = typer.Option(None, "--repository-id", "-r", help="owner/repo or a git URL (default: project scm_url or git remote)"),
    release_name: Optional[str] = typer.Option(None, "--release-name", help="Release name (default: tag)"),
    description: Optional[str] = typer.Option(None, "--description", help="Release description"),
    commitish: Optional[str] = typer.Option(None, "--commitish", help="Branch, tag or commit the release points to"),
    draft: Optional[bool] = typer.Option(None, "--draft/--no-draft", help="Create as draft (default: let the API decide)"),
    prerelease: Optional[bool] = typer.Option(None, "--prerelease/--no-prerelease", help="Mark as prerelease (default: guessed from tag)"),
    artifact: Optional[str] = typer.Option(None, "--artifact", "-a", help="Main artifact to upload"),
    directory: Optional[Path] = typer.Option(None, "--directory", "-d", help="Base directory of an extra file set"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Include glob for the file set (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Exclude glob for the file set (repeatable)"),
    overwrite_artifact: Optional[bool] = typer.Option(None, "--overwrite-artifact", help="Replace assets that already exist"),
    delete_release: Optional[bool] = typer.Option(None, "--delete-release", help="Delete an existing release with the same name first"),
    fail_on_existing_release: Optional[bool] = typer.Option(None, "--fail-on-existing-release", help="Fail if a release with the same name exists"),
    server_id: Optional[str] = typer.Option(None, "--server-id", "-s", help=f"Settings server entry to use (default: {DEFAULT_SERVER_ID})"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="API base URL (GitHub Enterprise)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Project config file (default: .ghrelease.yaml)"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file holding server credentials"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve options and files without calling the API"),
    expand_env: bool = typer.Option(False, "--expand-env", help="Expand $VAR references in stored server secrets from the environment"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    _configure_logging(verbose)
    file_set = None
    if directory or include or exclude:
        file_set = FileSet(
            directory=str(directory or "."),
            includes=list(include or []),
            excludes=list(exclude or []),
        )
    overrides: Dict[str, Any] = {
        "tag": tag,
        "repository_id": repository_id,
        "release_name": release_name,
        "description": description,
        "commitish": commitish,
        "draft": draft,
        "prerelease": prerelease,
        "artifact": artifact,
        "file_set": file_set,
        "overwrite_artifact": overwrite_artifact,
        "delete_release": delete_release,
        "fail_on_existing_release": fail_on_existing_release,
        "server_id": server_id,
        "api_url": api_url,
    }
    code = cmd_upload(overrides, config_path=config_path, settings_path=settings_path, dry_run=dry_run, expand_env=expand_env)
    raise typer.Exit(code)


@app.command("login", help="Store credentials for a server entry")
def login_command(
    server_id: str = typer.Option(DEFAULT_SERVER_ID, "--server-id", "-s", help="Server entry id"),
    method: str = typer.Option("token", "--method", "-m", help="Authentication method (token or password)"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to write"),
):
    settings = _load_settings(settings_path)
    if method == "token":
        token = typer.prompt("Access token", hide_input=True)
        settings.set_server(Server(id=server_id, private_key=token))
    elif method == "password":
        username = typer.prompt("Username")
        password = typer.prompt("Password", hide_input=True)
        settings.set_server(Server(id=server_id, username=username, password=password))
    else:
        err_console.print("[red]Error:[/red] Invalid authentication method. Choose 'token' or 'password'.")
        raise typer.Exit(1)
    try:
        settings.save()
    except ReleaseError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"✓ Stored credentials for server '{server_id}' in {settings.config_path}")


@app.command("logout", help="Remove a stored server entry")
def logout_command(
    server_id: str = typer.Option(DEFAULT_SERVER_ID, "--server-id", "-s", help="Server entry id"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to write"),
):
    settings = _load_settings(settings_path)
    if not settings.remove_server(server_id):
        console.print(f"No server '{server_id}' configured")
        raise typer.Exit(1)
    settings.save()
    console.print(f"✓ Removed server '{server_id}'")


@app.command("servers", help="List configured server entries")
def servers_command(
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to read"),
):
    try:
        servers = _load_settings(settings_path).servers
    except ReleaseError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if not servers:
        console.print("No servers configured. Run 'ghrelease login' first.")
        return
    table = Table(title="Servers")
    table.add_column("ID", style="cyan")
    table.add_column("Username")
    table.add_column("Auth")
    for server in servers:
        auth = "password" if server.username and server.password else ("token" if server.private_key else "[red]none[/red]")
        table.add_row(server.id, server.username or "-", auth)
    console.print(table)


@app.command("repo-id", help="Print the owner/repo id extracted from a git URL")
def repo_id_command(value: str = typer.Argument(..., help="Git URL, SCM connection string or owner/repo")):
    typer.echo(compute_repository_id(value))


@app.command("prerelease", help="Print whether a version would be released as a prerelease")
def prerelease_command(version: str = typer.Argument(..., help="Version string")):
    typer.echo(json.dumps({"version": version, "prerelease": guess_prerelease(version)}))


def main(argv: list[str] | None = None) -> int:
    # Programmatic entry point that returns an int code.
    try:
        # With standalone_mode=False click returns the typer.Exit code instead of raising it
        rv = app(args=argv, prog_name="ghrelease", standalone_mode=False)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code or 0)
    except SystemExit as e:
        return int(e.code or 0)
    except Exception as e:  # noqa: BLE001
        if str(e):
            typer.echo(f"Unexpected error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
