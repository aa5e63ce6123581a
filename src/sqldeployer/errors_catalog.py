"""Actionable error catalog for SqlDeployer."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "tool_not_found": {
        "what": "Could not locate {tool}.",
        "next": "Install {tool}, add it to PATH, or pass its location with `--{option}`.",
    },
    "tool_path_missing": {
        "what": "Configured {tool} path does not exist: {path}",
        "next": "Fix the `--{option}` value or remove it to search PATH.",
    },
    "package_not_found": {
        "what": "Package file not found: {path}",
        "next": "Build the database project first or point `--path` at an existing `.dacpac`.",
    },
    "script_not_found": {
        "what": "SQL script not found: {path}",
        "next": "Check the `--path` value.",
    },
    "folder_not_found": {
        "what": "SQL folder not found: {path}",
        "next": "Point `--path` at a directory containing `.sql` files.",
    },
    "unknown_path_type": {
        "what": "Cannot infer the action for path: {path}",
        "next": "Use a `.dacpac` file, a `.sql` file or a folder, or pass `--action` explicitly.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
