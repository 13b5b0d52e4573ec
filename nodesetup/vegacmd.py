"""Wrappers around the vega and visor binaries and the files they own."""
from pathlib import Path
from typing import Union

import tomlkit

from nodesetup.utils import execute_binary

DATA_NODE_CONFIG_PATH = "config/data-node/config.toml"
CORE_CONFIG_PATH = "config/node/config.toml"
TENDERMINT_CONFIG_PATH = "config/config.toml"
VISOR_CONFIG_PATH = "config.toml"
GENESIS_PATH = "config/genesis.json"

RUN_CONFIG_FILE = "run-config.toml"
CURRENT_LINK = "current"
VISOR_BINARY = "visor"

NODE_MODE_FULL = "full"

INIT_TIMEOUT = 120


def check_version(binary: Union[str, Path]) -> str:
    """Return the output of `<binary> version`."""
    return execute_binary(binary, ["version"], timeout=INIT_TIMEOUT)


def init_visor(visor_binary: Union[str, Path], visor_home: str) -> str:
    return execute_binary(visor_binary, ["init", "--home", visor_home], timeout=INIT_TIMEOUT)


def init_tendermint(vega_binary: Union[str, Path], tendermint_home: str) -> str:
    return execute_binary(vega_binary, ["tm", "init", "--home", tendermint_home], timeout=INIT_TIMEOUT)


def init_vega(vega_binary: Union[str, Path], vega_home: str, node_mode: str = NODE_MODE_FULL) -> str:
    return execute_binary(vega_binary, ["init", "--home", vega_home, node_mode], timeout=INIT_TIMEOUT)


def init_data_node(vega_binary: Union[str, Path], data_node_home: str, chain_id: str) -> str:
    return execute_binary(
        vega_binary,
        ["datanode", "init", "--home", data_node_home, chain_id],
        timeout=INIT_TIMEOUT,
    )


def render_run_config(version: str, vega_home: str, tendermint_home: str, data_node_home: str) -> str:
    """Build the run-config.toml visor uses to start vega and the data-node."""
    doc = tomlkit.document()
    doc["name"] = version

    vega = tomlkit.table()
    vega_binary = tomlkit.table()
    vega_binary["path"] = "vega"
    vega_binary["args"] = [
        "start",
        "--home", vega_home,
        "--tendermint-home", tendermint_home,
    ]
    vega["binary"] = vega_binary
    rpc = tomlkit.table()
    rpc["socketPath"] = "/tmp/vega.sock"
    rpc["httpPath"] = "/rpc"
    vega["rpc"] = rpc
    doc["vega"] = vega

    data_node = tomlkit.table()
    data_node_binary = tomlkit.table()
    data_node_binary["path"] = "vega"
    data_node_binary["args"] = [
        "datanode",
        "start",
        "--home", data_node_home,
    ]
    data_node["binary"] = data_node_binary
    doc["data_node"] = data_node

    return tomlkit.dumps(doc)
