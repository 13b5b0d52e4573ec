"""In-place editing of TOML configuration files by dotted key paths.

The documents are parsed with tomlkit, so every key that is not updated keeps
its value, position, comments and formatting. Writing back a document with no
updates reproduces the original bytes.
"""
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Dict, Union

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from nodesetup.errors import ConfigError, ConfigLoadError, ConfigWriteError
from nodesetup.utils import log_debug


def load_config(path: Union[str, Path]) -> TOMLDocument:
    """Parse a TOML file, raising ConfigLoadError if it is missing or malformed."""
    path = Path(path)
    try:
        content = path.read_text()
    except OSError as e:
        raise ConfigLoadError(f"cannot read config file {path}: {e}") from e

    try:
        return tomlkit.parse(content)
    except TOMLKitError as e:
        raise ConfigLoadError(f"malformed config file {path}: {e}") from e


def save_config(path: Union[str, Path], document: TOMLDocument) -> None:
    """Write a document back to disk."""
    path = Path(path)
    try:
        path.write_text(tomlkit.dumps(document))
    except OSError as e:
        raise ConfigWriteError(f"cannot write config file {path}: {e}") from e


def get_value(document: MutableMapping, key: str) -> Any:
    """Read a dotted key path, raising KeyError if any part is missing."""
    node: Any = document
    for part in key.split("."):
        if not isinstance(node, MutableMapping):
            raise KeyError(key)
        node = node[part]
    return node


def set_value(document: MutableMapping, key: str, value: Any) -> None:
    """Set a dotted key path, creating intermediate tables as needed."""
    *parents, leaf = key.split(".")
    node = document
    for part in parents:
        if part not in node:
            node[part] = tomlkit.table()
        node = node[part]
        if not isinstance(node, MutableMapping):
            raise ConfigError(f"cannot set {key}: {part} is not a table")
    node[leaf] = value


def get_config_value(path: Union[str, Path], key: str) -> Any:
    """Read a single dotted key from a TOML file as a plain Python value."""
    value = get_value(load_config(path), key)
    return value.unwrap() if hasattr(value, "unwrap") else value


def update_config(path: Union[str, Path], updates: Dict[str, Any]) -> None:
    """Overwrite the given dotted keys of a TOML file, keeping everything else."""
    document = load_config(path)
    for key, value in updates.items():
        log_debug(f"{path}: {key} = {value!r}")
        set_value(document, key, value)
    save_config(path, document)
