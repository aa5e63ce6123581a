"""Shared domain models for SqlDeployer."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional

from sqldeployer.services.connection_string import ConnectionString


class ActionType(Enum):
    PACKAGE = "package"
    SINGLE_SCRIPT = "script"
    FOLDER_OF_SCRIPTS = "folder"


class PackageAction(Enum):
    """SqlPackage actions. Only Publish is supported currently."""

    PUBLISH = "Publish"
    EXTRACT = "Extract"
    EXPORT = "Export"
    IMPORT = "Import"
    DRIFT_REPORT = "DriftReport"
    DEPLOY_REPORT = "DeployReport"
    SCRIPT = "Script"


@dataclass(frozen=True)
class PackageActionInputs:
    """Publish a compiled .dacpac package with sqlpackage."""

    action_type: ClassVar[ActionType] = ActionType.PACKAGE

    server_name: str
    connection: ConnectionString
    package_path: str
    package_action: PackageAction = PackageAction.PUBLISH
    additional_arguments: Optional[str] = None


@dataclass(frozen=True)
class ScriptActionInputs:
    """Run one .sql file with sqlcmd."""

    action_type: ClassVar[ActionType] = ActionType.SINGLE_SCRIPT

    server_name: str
    connection: ConnectionString
    script_file: str
    additional_arguments: Optional[str] = None


@dataclass(frozen=True)
class FolderActionInputs:
    """Run every .sql file directly inside a folder with sqlcmd."""

    action_type: ClassVar[ActionType] = ActionType.FOLDER_OF_SCRIPTS

    server_name: str
    connection: ConnectionString
    script_folder: str
    additional_arguments: Optional[str] = None
