import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE, PACKAGE_EXTENSION, SCRIPT_EXTENSION
from .core import ActionDispatcher
from .errors import DeployerError
from .errors_catalog import actionable_error
from .models import (
    ActionType,
    FolderActionInputs,
    PackageAction,
    PackageActionInputs,
    ScriptActionInputs,
)
from .services.config_loader import ConfigLoader
from .services.connection_string import ConnectionString
from .services.tool_locator import ToolLocator


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def infer_action_type(path: str) -> ActionType:
    if os.path.isdir(path):
        return ActionType.FOLDER_OF_SCRIPTS

    suffix = os.path.splitext(path)[1].lower()
    if suffix == PACKAGE_EXTENSION:
        return ActionType.PACKAGE
    if suffix == SCRIPT_EXTENSION:
        return ActionType.SINGLE_SCRIPT

    raise DeployerError(actionable_error("unknown_path_type", path=path))


def parse_package_action(value) -> PackageAction:
    for package_action in PackageAction:
        if package_action.value.lower() == str(value).lower():
            return package_action
    raise DeployerError(f"Unknown SqlPackage action: '{value}'.")


def build_inputs(
    action_type: ActionType,
    path: str,
    server_name: str,
    connection: ConnectionString,
    sqlpackage_action: PackageAction = PackageAction.PUBLISH,
    arguments=None,
):
    if action_type is ActionType.PACKAGE:
        return PackageActionInputs(
            server_name=server_name,
            connection=connection,
            package_path=path,
            package_action=sqlpackage_action,
            additional_arguments=arguments,
        )
    if action_type is ActionType.SINGLE_SCRIPT:
        return ScriptActionInputs(
            server_name=server_name,
            connection=connection,
            script_file=path,
            additional_arguments=arguments,
        )
    return FolderActionInputs(
        server_name=server_name,
        connection=connection,
        script_folder=path,
        additional_arguments=arguments,
    )


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--server-name",
    required=False,
    help="Target server. Defaults to the connection string's server.",
)
@click.option("--connection-string", required=False, help="ADO.NET connection string of the target database.")
@click.option(
    "--path",
    required=False,
    help="Path to a .dacpac package, a .sql file or a folder of .sql files.",
)
@click.option(
    "--action",
    required=False,
    type=click.Choice([action.value for action in ActionType]),
    help="Action to run. Inferred from --path when omitted.",
)
@click.option(
    "--sqlpackage-action",
    required=False,
    type=click.Choice([action.value for action in PackageAction], case_sensitive=False),
    help="SqlPackage action for packages (default: Publish).",
)
@click.option("--arguments", required=False, help="Additional arguments appended to the tool command line.")
@click.option(
    "--sqlpackage-path",
    required=False,
    type=click.Path(),
    help="Path to the sqlpackage executable.",
)
@click.option("--sqlcmd-path", required=False, type=click.Path(), help="Path to the sqlcmd executable.")
@click.option(
    "--timeout",
    required=False,
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Timeout in seconds for each tool invocation.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    server_name,
    connection_string,
    path,
    action,
    sqlpackage_action,
    arguments,
    sqlpackage_path,
    sqlcmd_path,
    timeout,
    config,
    verbose,
    log_file,
):
    """Deploy a .dacpac package or run SQL scripts against a database."""
    logger = logging.getLogger("sqldeployer")

    try:
        config_loader = ConfigLoader()
        config_values = config_loader.load(config_loader.resolve_path(config))
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc

    server_name = _resolve_option(server_name, config_values, "server_name")
    connection_string = _resolve_option(connection_string, config_values, "connection_string")
    path = _resolve_option(path, config_values, "path")
    action = _resolve_option(action, config_values, "action")
    sqlpackage_action = _resolve_option(
        sqlpackage_action, config_values, "sqlpackage_action", default=PackageAction.PUBLISH.value
    )
    arguments = _resolve_option(arguments, config_values, "arguments")
    sqlpackage_path = _resolve_option(sqlpackage_path, config_values, "sqlpackage_path")
    sqlcmd_path = _resolve_option(sqlcmd_path, config_values, "sqlcmd_path")
    timeout = _resolve_option(timeout, config_values, "timeout")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if not connection_string:
        raise click.ClickException(
            "Missing required option '--connection-string' (or provide it in config)."
        )
    if not path:
        raise click.ClickException("Missing required option '--path' (or provide it in config).")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        connection = ConnectionString(connection_string)
        action_type = ActionType(action) if action else infer_action_type(path)
        package_action = parse_package_action(sqlpackage_action)
    except (ValueError, DeployerError) as exc:
        raise click.ClickException(str(exc)) from exc

    server_name = server_name or connection.server
    if not server_name:
        raise click.ClickException(
            "Missing required option '--server-name' (or set 'Server' in the connection string)."
        )

    inputs = build_inputs(
        action_type=action_type,
        path=path,
        server_name=server_name,
        connection=connection,
        sqlpackage_action=package_action,
        arguments=arguments,
    )
    logger.info("Running %s action on %s/%s", action_type.value, server_name, connection.database)

    dispatcher = ActionDispatcher(
        tool_locator=ToolLocator(
            logger=logger,
            sqlpackage_path=sqlpackage_path,
            sqlcmd_path=sqlcmd_path,
        ),
        timeout=timeout,
    )
    raise SystemExit(dispatcher.run(inputs))


if __name__ == "__main__":
    main()
