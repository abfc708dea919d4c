"""CLI commands for deploying applications to a local Docker engine.

Implements the 'dockerdev deploy' command group: run a built image as a
container, report its health, and destroy it.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click

from dockerdev.config.loader import ConfigLoader
from dockerdev.deploy.platform import Platform
from dockerdev.deploy.progress import NullStepGroup, StepGroup, TerminalStepGroup
from dockerdev.deploy.state import (
    get_deployment_record,
    get_state_path,
    remove_deployment_record,
    update_deployment_record,
)
from dockerdev.lib.errors import ConfigError, DeploymentError, DockerNotAvailableError
from dockerdev.lib.logging_config import get_logger, setup_logging
from dockerdev.models.deployment import (
    DeploymentConfig,
    Image,
    JobInfo,
    PlatformConfig,
    Source,
)
from dockerdev.models.deployment_state import DeploymentRecord
from dockerdev.models.resource import Health, StatusReport

logger = get_logger(__name__)

_HEALTH_COLORS = {
    Health.READY: "green",
    Health.ALIVE: "yellow",
    Health.PARTIAL: "yellow",
    Health.DOWN: "red",
    Health.MISSING: "red",
    Health.UNKNOWN: "white",
}


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in deployment commands.

    Exit codes:
        2: Configuration error
        3: Deployment/execution error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except DockerNotAvailableError as e:
        logger.error(f"Docker not available: {e}")
        click.secho("Error: Docker is not available", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def _load_config(platform_config: str) -> tuple[PlatformConfig, Path]:
    config_path = Path(platform_config).resolve()
    config = ConfigLoader().load_platform_config(config_path)
    return config, config_path


def _step_group(quiet: bool) -> StepGroup:
    return NullStepGroup() if quiet else TerminalStepGroup()


def _parse_env_options(values: tuple[str, ...]) -> dict[str, str]:
    env: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise ConfigError("env", f"Expected KEY=VALUE, got {value!r}")
        env[key] = val
    return env


def _require_record(state_path: Path, app: str) -> DeploymentRecord:
    record = get_deployment_record(state_path, app)
    if record is None:
        raise ConfigError(
            field="deployment_state",
            message=(
                f"No deployment record found for '{app}'. "
                "Run `dockerdev deploy run` first."
            ),
        )
    return record


def _display_status_report(report: StatusReport) -> None:
    click.echo()
    click.secho("Deployment Status", bold=True)
    for resource in report.resources:
        color = _HEALTH_COLORS.get(resource.health, "white")
        health = click.style(f"{resource.health.value:<8}", fg=color)
        click.echo(
            f"  {health} {resource.category_display_hint.value:<9} "
            f"{resource.name or '(unnamed)'}"
        )
        if resource.health_message:
            click.echo(f"           {resource.health_message}")
    click.echo()
    overall = click.style(
        report.health.value, fg=_HEALTH_COLORS.get(report.health, "white"), bold=True
    )
    click.echo(f"  Overall:   {overall}")
    click.echo(f"  Message:   {report.health_message}")
    click.echo()


@click.group(name="deploy", invoke_without_command=True)
@click.pass_context
def deploy(ctx: click.Context) -> None:
    """Deploy applications as containers on a Docker engine.

    Subcommands:

        run     Run a built image as a container
        status  Check deployment health
        destroy Remove a deployment's container

    Example:

        dockerdev deploy run dockerdev.yaml --app web --image web --tag v1
    """
    ctx.ensure_object(dict)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@deploy.command()
@click.argument(
    "platform_config",
    type=click.Path(exists=True),
    default="dockerdev.yaml",
    required=False,
)
@click.option("--app", required=True, help="Application name")
@click.option("--image", "image_name", required=True, help="Image repository name")
@click.option("--tag", default="latest", show_default=True, help="Image tag")
@click.option(
    "--workspace", default="default", show_default=True, help="Workspace name"
)
@click.option(
    "--env",
    "env_vars",
    multiple=True,
    help="Deploy-time environment variable (KEY=VALUE), repeatable",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
def run(
    platform_config: str,
    app: str,
    image_name: str,
    tag: str,
    workspace: str,
    env_vars: tuple[str, ...],
    verbose: bool,
    quiet: bool,
) -> None:
    """Run a previously built image as a container.

    PLATFORM_CONFIG is the path to the platform configuration file.
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config, config_path = _load_config(platform_config)
        image = Image(image=image_name, tag=tag)

        if not quiet:
            click.echo()
            click.secho("Deploy Configuration:", bold=True)
            click.echo(f"  App:       {app}")
            click.echo(f"  Image:     {image.reference}")
            click.echo(f"  Workspace: {workspace}")
            click.echo(f"  Port:      {config.effective_service_port}")
            click.echo()

        platform = Platform(config)
        deployment = platform.deploy(
            Source(app=app, path=str(config_path.parent)),
            JobInfo(workspace=workspace),
            image,
            DeploymentConfig(env=_parse_env_options(env_vars)),
            log=_step_group(quiet),
        )

        record = update_deployment_record(
            get_state_path(config_path),
            app,
            DeploymentRecord(deployment=deployment, image_uri=image.reference),
        )

        if quiet:
            click.echo(deployment.container)
            sys.exit(0)

        click.echo()
        click.secho("Deployment Successful!", fg="green", bold=True)
        click.echo(f"  Deployment: {deployment.id}")
        click.echo(f"  Container:  {deployment.container}")
        click.echo(f"  Status:     {record.status}")
        click.echo()


@deploy.command()
@click.argument(
    "platform_config",
    type=click.Path(exists=True),
    default="dockerdev.yaml",
    required=False,
)
@click.option("--app", required=True, help="Application name")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
def status(platform_config: str, app: str, verbose: bool, quiet: bool) -> None:
    """Check deployment health for an application."""
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config, config_path = _load_config(platform_config)
        state_path = get_state_path(config_path)
        record = _require_record(state_path, app)

        report = Platform(config).status(record.deployment, log=_step_group(quiet))

        update_deployment_record(
            state_path, app, record.model_copy(update={"status": report.health.value})
        )

        if quiet:
            click.echo(report.health.value)
            sys.exit(0)

        _display_status_report(report)


@deploy.command()
@click.argument(
    "platform_config",
    type=click.Path(exists=True),
    default="dockerdev.yaml",
    required=False,
)
@click.option("--app", required=True, help="Application name")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
def destroy(
    platform_config: str, app: str, force: bool, verbose: bool, quiet: bool
) -> None:
    """Remove the container of a deployed application.

    The shared network is kept for later deployments.
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config, config_path = _load_config(platform_config)
        state_path = get_state_path(config_path)
        record = _require_record(state_path, app)

        if not force:
            confirm = click.confirm(f"Destroy deployment '{app}'?", default=False)
            if not confirm:
                click.secho("Destroy aborted.", fg="yellow")
                sys.exit(0)

        Platform(config).destroy(record.deployment, log=_step_group(quiet))
        remove_deployment_record(state_path, app)

        if quiet:
            click.echo("deleted")
            sys.exit(0)

        click.echo()
        click.secho("Deployment Destroyed", fg="green", bold=True)
        click.echo(f"  App:        {app}")
        click.echo(f"  Deployment: {record.deployment.id}")
        click.echo()
