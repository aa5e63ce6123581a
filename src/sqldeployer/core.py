import logging
import os
from typing import List, Optional

from rich.console import Console

from .constants import SCRIPT_EXTENSION
from .errors import DeployerError, InvalidConnectionStringError, UnsupportedActionError
from .errors_catalog import actionable_error
from .models import (
    ActionType,
    FolderActionInputs,
    PackageAction,
    PackageActionInputs,
    ScriptActionInputs,
)
from .services.command_runner import CommandRunner, redact_text, split_command_line
from .services.tool_locator import ToolLocator

console = Console()
logger = logging.getLogger("sqldeployer")


def _append_arguments(args: str, additional_arguments: Optional[str]) -> str:
    if additional_arguments:
        return f"{args} {additional_arguments}"
    return args


def _ensure_quotable(label: str, value: str) -> str:
    if '"' in value:
        raise InvalidConnectionStringError(
            f"The {label} contains a double quote, which cannot be passed on the tool command line."
        )
    return value


class ActionDispatcher:
    """Runs one deployment action against a target database.

    The action is selected by ``inputs.action_type``. Tool processes run one at
    a time; the first non-zero exit aborts the whole action.
    """

    INPUT_TYPES = {
        ActionType.PACKAGE: PackageActionInputs,
        ActionType.SINGLE_SCRIPT: ScriptActionInputs,
        ActionType.FOLDER_OF_SCRIPTS: FolderActionInputs,
    }

    def __init__(
        self,
        tool_locator: Optional[ToolLocator] = None,
        command_runner: Optional[CommandRunner] = None,
        timeout: Optional[float] = None,
    ):
        self.tool_locator = tool_locator or ToolLocator(logger=logger)
        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.timeout = timeout

    def execute(self, inputs):
        action_type = getattr(inputs, "action_type", None)
        expected_type = None
        if isinstance(action_type, ActionType):
            expected_type = self.INPUT_TYPES.get(action_type)
        if expected_type is None or not isinstance(inputs, expected_type):
            raise UnsupportedActionError(f"Invalid action type '{self._describe(action_type)}'.")

        if action_type is ActionType.PACKAGE:
            self._execute_package_action(inputs)
        elif action_type is ActionType.SINGLE_SCRIPT:
            self._execute_script_action(inputs)
        else:
            self._execute_folder_action(inputs)

    def run(self, inputs) -> int:
        """Executes ``inputs`` and maps the outcome to a process exit code."""
        try:
            self.execute(inputs)
            return 0
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except DeployerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1

    def build_package_arguments(self, inputs: PackageActionInputs) -> str:
        if inputs.package_action is PackageAction.PUBLISH:
            connection_string = _ensure_quotable(
                "connection string", inputs.connection.connection_string
            )
            args = (
                f'/Action:Publish /TargetConnectionString:"{connection_string}" '
                f'/SourceFile:"{inputs.package_path}"'
            )
        else:
            raise UnsupportedActionError(
                f"Not supported SqlPackage action: '{self._describe(inputs.package_action)}'."
            )

        return _append_arguments(args, inputs.additional_arguments)

    def build_sqlcmd_arguments(self, inputs, script_file: str) -> str:
        connection = inputs.connection
        if connection.integrated_security:
            credentials = "-E"
        else:
            user_id = _ensure_quotable("user id", connection.user_id)
            password = _ensure_quotable("password", connection.password)
            credentials = f'-U "{user_id}" -P "{password}"'

        args = (
            f"-S {inputs.server_name} -d {connection.database} {credentials} "
            f'-i "{script_file}"'
        )
        return _append_arguments(args, inputs.additional_arguments)

    def list_folder_scripts(self, folder: str) -> List[str]:
        """Direct entries of ``folder`` ending in ``.sql``, in directory order."""
        try:
            with os.scandir(folder) as entries:
                return [
                    os.path.join(folder, entry.name)
                    for entry in entries
                    if entry.name.endswith(SCRIPT_EXTENSION)
                ]
        except OSError as exc:
            raise DeployerError(f"Could not list SQL folder '{folder}': {exc}") from exc

    def _execute_package_action(self, inputs: PackageActionInputs):
        logger.debug("Begin executing package action")
        args = self.build_package_arguments(inputs)
        if not os.path.isfile(inputs.package_path):
            raise DeployerError(actionable_error("package_not_found", path=inputs.package_path))

        sqlpackage_path = self.tool_locator.get_sqlpackage_path()
        self._run_tool(sqlpackage_path, args, inputs)

        console.print(
            f"[green]Successfully executed action {inputs.package_action.value} "
            "on target database.[/green]"
        )

    def _execute_script_action(self, inputs: ScriptActionInputs):
        if not os.path.isfile(inputs.script_file):
            raise DeployerError(actionable_error("script_not_found", path=inputs.script_file))

        sqlcmd_path = self.tool_locator.get_sqlcmd_path()
        self._run_tool(sqlcmd_path, self.build_sqlcmd_arguments(inputs, inputs.script_file), inputs)

        console.print("[green]Successfully executed SQL file on target database.[/green]")

    def _execute_folder_action(self, inputs: FolderActionInputs):
        if not os.path.isdir(inputs.script_folder):
            raise DeployerError(actionable_error("folder_not_found", path=inputs.script_folder))

        sqlcmd_path = self.tool_locator.get_sqlcmd_path()
        scripts = self.list_folder_scripts(inputs.script_folder)
        if not scripts:
            logger.warning("No %s files found in %s", SCRIPT_EXTENSION, inputs.script_folder)

        for script in scripts:
            console.print(f"[blue]Executing {os.path.basename(script)}...[/blue]")
            self._run_tool(sqlcmd_path, self.build_sqlcmd_arguments(inputs, script), inputs)

        console.print(
            "[green]Successfully executed scripts in SQL folder on target database.[/green]"
        )

    def _run_tool(self, tool_path: str, args: str, inputs):
        command_line = f'"{tool_path}" {args}'
        secrets = [inputs.connection.password]
        result = self.command_runner.run(
            split_command_line(command_line),
            capture_output=True,
            timeout=self.timeout,
            redact=secrets,
        )
        if result.stdout:
            logger.info(redact_text(result.stdout.rstrip(), secrets))

    @staticmethod
    def _describe(value) -> str:
        if isinstance(value, PackageAction):
            return value.value
        if isinstance(value, ActionType):
            return value.name
        return str(value)
