import logging
import os

import click
from rich.logging import RichHandler

from .core import DbDump, console
from .errors import DumpError
from .models import DbConnectionSpec, ProvisioningTarget
from .services.config_loader import ConfigLoader

DEFAULT_CONFIG_FILE = ".drdump.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


_CONNECTION_OPTIONS = [
    click.option("--host", envvar="host", required=False, help="MySQL host."),
    click.option("--port", envvar="port", type=int, required=False, help="MySQL port (default: 3306)."),
    click.option("--username", envvar="username", required=False, help="MySQL user."),
    click.option(
        "--password-id",
        envvar="password_id",
        required=False,
        help="Secrets Manager id holding the MySQL password.",
    ),
    click.option(
        "--databases",
        envvar="databases",
        required=False,
        help="Comma-separated list of databases.",
    ),
]


def connection_options(func):
    """Connection options; each falls back to the lowercase environment variable."""
    for option in reversed(_CONNECTION_OPTIONS):
        func = option(func)
    return func


def _build_spec(
    config, host, port, username, password_id, databases, require_databases=True
) -> DbConnectionSpec:
    payload = {
        "host": _resolve_option(host, config, "host"),
        "port": _resolve_option(port, config, "port", default=3306),
        "username": _resolve_option(username, config, "username"),
        "passwordId": _resolve_option(password_id, config, "password_id"),
        "databases": _resolve_option(databases, config, "databases"),
    }
    try:
        return DbConnectionSpec.from_payload(payload, require_databases=require_databases)
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc


def _source_args(config, region, project_id):
    region = _resolve_option(region, config, "region")
    project_id = _resolve_option(project_id, config, "project_id")
    if not region:
        raise click.ClickException("Missing required option '--region' (or provide it in config).")
    if not project_id:
        raise click.ClickException("Missing required option '--project-id' (or provide it in config).")
    return region, str(project_id)


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, config, verbose, log_file):
    """Dump MySQL databases to S3 and prepare source environments for disaster recovery."""
    logger = logging.getLogger("drdump")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
        settings = config_loader.settings_from(config_values)
    except (DumpError, TypeError) as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(settings.log_level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    ctx.obj = {"config": config_values, "settings": settings}


@main.command()
@connection_options
@click.pass_obj
def dump(obj, host, port, username, password_id, databases):
    """Dump, compress and upload the requested databases."""
    spec = _build_spec(obj["config"], host, port, username, password_id, databases)
    try:
        artifact = DbDump(settings=obj["settings"]).dump(spec)
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(artifact)


@main.command("databases")
@connection_options
@click.pass_obj
def list_databases(obj, host, port, username, password_id, databases):
    """List the databases visible to the user."""
    spec = _build_spec(obj["config"], host, port, username, password_id, databases, require_databases=False)
    try:
        names = DbDump(settings=obj["settings"]).get_databases(spec)
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc
    for name in names:
        click.echo(name)


@main.command("check-env")
@click.option("--region", required=False, help="Source region.")
@click.option("--project-id", required=False, help="Project whose source credential is used.")
@click.pass_obj
def check_env(obj, region, project_id):
    """Report whether the listing function exists in the source environment."""
    region, project_id = _source_args(obj["config"], region, project_id)
    try:
        present = DbDump.for_source(region, project_id, settings=obj["settings"]).check_environment()
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc
    if present:
        console.print("[green]Environment is ready.[/green]")
    else:
        console.print("[yellow]Listing function is missing; run prepare-env.[/yellow]")
    raise SystemExit(0 if present else 1)


@main.command("prepare-env")
@click.option("--region", required=False, help="Source region.")
@click.option("--project-id", required=False, help="Project whose source credential is used.")
@click.option("--subnet-id", "subnet_ids", multiple=True, help="Subnet for the listing function (repeatable).")
@click.option(
    "--security-group-id",
    "security_group_ids",
    multiple=True,
    help="Security group for the listing function (repeatable).",
)
@click.pass_obj
def prepare_env(obj, region, project_id, subnet_ids, security_group_ids):
    """Provision the bucket stack, listing function and its network attachment."""
    region, project_id = _source_args(obj["config"], region, project_id)
    settings = obj["settings"]
    target = ProvisioningTarget(
        region=region,
        project_id=project_id,
        subnet_ids=tuple(subnet_ids),
        security_group_ids=tuple(security_group_ids),
        stack_name=settings.bucket_stack_name,
        function_name=settings.function_name,
    )
    try:
        DbDump.for_source(region, project_id, settings=settings).prepare_environment(target)
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command("call-databases")
@click.option("--region", required=False, help="Source region.")
@click.option("--project-id", required=False, help="Project whose source credential is used.")
@click.option("--db-id", required=True, help="Database id used to locate the source password secret.")
@connection_options
@click.pass_obj
def call_databases(obj, region, project_id, db_id, host, port, username, password_id, databases):
    """List databases through the remote listing function."""
    region, project_id = _source_args(obj["config"], region, project_id)
    spec = _build_spec(obj["config"], host, port, username, password_id, databases, require_databases=False)
    try:
        names = DbDump.for_source(region, project_id, settings=obj["settings"]).call_get_databases(
            project_id, db_id, spec
        )
    except DumpError as exc:
        raise click.ClickException(str(exc)) from exc
    if names is None:
        raise click.ClickException("The listing function did not return a result.")
    for name in names:
        click.echo(name)


if __name__ == "__main__":
    main()
