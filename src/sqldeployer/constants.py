"""Shared constants for SqlDeployer."""

PACKAGE_EXTENSION = ".dacpac"
SCRIPT_EXTENSION = ".sql"

SQLPACKAGE = "sqlpackage"
SQLCMD = "sqlcmd"

SQLPACKAGE_ENV_VAR = "SQLPACKAGE_PATH"
SQLCMD_ENV_VAR = "SQLCMD_PATH"

DEFAULT_CONFIG_FILE = ".sqldeployer.yml"

REDACTED = "********"
