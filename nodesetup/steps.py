"""Provisioning workflow steps for a data-node installation."""
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from nodesetup import artifacts, vegacmd
from nodesetup.artifacts import ArtifactKind
from nodesetup.config_patcher import update_config
from nodesetup.errors import FilesystemError, NodeSetupError, StepError, ValidationError
from nodesetup.network import NetworkConfig
from nodesetup.settings import SettingsModel, StartupMode
from nodesetup.utils import download_file, log_action, log_info


@dataclass
class ConfigUpdates:
    """Key paths to overwrite in each of the four node configuration files."""

    data_node: Dict[str, Any] = field(default_factory=dict)
    vega: Dict[str, Any] = field(default_factory=dict)
    tendermint: Dict[str, Any] = field(default_factory=dict)
    visor: Dict[str, Any] = field(default_factory=dict)


def build_config_updates(
    settings: SettingsModel,
    network: NetworkConfig,
    system: Optional[str] = None,
    machine: Optional[str] = None,
) -> ConfigUpdates:
    """Compute the config changes required by the chosen startup mode."""
    sql = settings.sql_credentials
    updates = ConfigUpdates(
        data_node={
            "SQLStore.ConnectionConfig.Host": sql.host,
            "SQLStore.ConnectionConfig.Port": sql.port,
            "SQLStore.ConnectionConfig.Username": sql.user,
            "SQLStore.ConnectionConfig.Password": sql.password,
            "SQLStore.ConnectionConfig.Database": sql.database_name,
            "SQLStore.WipeOnStartup": True,
            "NetworkHistory.Store.BootstrapPeers": list(network.bootstrap_peers),
            "NetworkHistory.Initialise.Timeout": "4h",
            "API.RateLimit.Rate": 300.0,
            "API.RateLimit.Burst": 1000,
        },
        vega={
            "Snapshot.StartHeight": -1,
            "Broker.Socket.Enabled": True,
            "Broker.Socket.DialTimeout": "4h",
        },
        tendermint={
            "p2p.seeds": ",".join(network.tendermint_seeds),
            "p2p.pex": True,
            "statesync.enable": False,
            "statesync.trust_period": "672h0m0s",
        },
        visor={
            "maxNumberOfFirstConnectionRetries": 43200,
            "autoInstall.enabled": True,
            "autoInstall.repositoryOwner": network.repository_owner,
            "autoInstall.repository": network.repository_name,
            "autoInstall.asset.name": artifacts.asset_name(ArtifactKind.VEGA, network.repository, system, machine),
            "autoInstall.asset.binaryName": artifacts.binary_name(ArtifactKind.VEGA, network.repository),
        },
    )

    if settings.mode is StartupMode.FROM_NETWORK_HISTORY:
        snapshot = settings.latest_snapshot
        updates.data_node["AutoInitialiseFromNetworkHistory"] = True
        updates.tendermint.update({
            "statesync.enable": True,
            "statesync.trust_height": snapshot.trust_height(),
            "statesync.trust_hash": snapshot.block_hash,
            "statesync.rpc_servers": ",".join(network.tendermint_rpc_servers),
        })
    elif settings.mode is not StartupMode.FROM_GENESIS:
        raise ValidationError(f"unsupported startup mode: {settings.mode}")

    return updates


def run_step(name: str, func: Callable, *args, **kwargs) -> Any:
    """Run one pipeline step, wrapping any failure with the step name."""
    log_info(f"{name.capitalize()}...")
    try:
        return func(*args, **kwargs)
    except (NodeSetupError, OSError) as e:
        raise StepError(name, e) from e


def prepare_visor_home(settings: SettingsModel) -> Path:
    """Create the versioned directory with its run-config.toml."""
    version_dir = Path(settings.visor_home) / settings.install_version
    log_action(f"Preparing {version_dir}")
    run_config = vegacmd.render_run_config(
        settings.install_version,
        settings.vega_home,
        settings.tendermint_home,
        settings.data_node_home,
    )
    try:
        version_dir.mkdir(parents=True, exist_ok=True)
        (version_dir / vegacmd.RUN_CONFIG_FILE).write_text(run_config)
    except OSError as e:
        raise FilesystemError(f"cannot prepare {version_dir}: {e}") from e
    return version_dir


def activate_version(visor_home: str, version: str) -> Path:
    """Point the `current` symlink at the versioned directory, replacing any previous link."""
    version_dir = Path(visor_home) / version
    current = Path(visor_home) / vegacmd.CURRENT_LINK
    tmp_link = Path(visor_home) / f".{vegacmd.CURRENT_LINK}.{os.getpid()}"
    log_action(f"Linking {current} -> {version_dir}")
    try:
        if os.path.lexists(tmp_link):
            tmp_link.unlink()
        os.symlink(version_dir, tmp_link)
        os.replace(tmp_link, current)
    except OSError as e:
        raise FilesystemError(f"cannot link {current} to {version_dir}: {e}") from e
    return current


def copy_binaries(settings: SettingsModel, vega_binary: Path, visor_binary: Path) -> None:
    """Install visor in the visor home and vega in the versioned directory, then activate it."""
    visor_dst = Path(settings.visor_home) / vegacmd.VISOR_BINARY
    vega_dst = Path(settings.visor_home) / settings.install_version / vega_binary.name
    try:
        log_action(f"Copying {visor_binary} to {visor_dst}")
        shutil.copy2(visor_binary, visor_dst)
        log_action(f"Copying {vega_binary} to {vega_dst}")
        vega_dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(vega_binary, vega_dst)
    except OSError as e:
        raise FilesystemError(f"cannot copy binaries into {settings.visor_home}: {e}") from e
    activate_version(settings.visor_home, settings.install_version)


def check_binary_version(binary: Path) -> str:
    version = vegacmd.check_version(binary)
    log_action(f"{binary.name} version is {version}")
    return version


def download_genesis(settings: SettingsModel, network: NetworkConfig, timeout: int = 300) -> Path:
    destination = Path(settings.tendermint_home) / vegacmd.GENESIS_PATH
    log_action(f"Downloading genesis from {network.genesis_url}")
    download_file(network.genesis_url, destination, timeout=timeout)
    log_action(f"Genesis saved to {destination}")
    return destination


def provision_data_node(settings: SettingsModel, network: NetworkConfig, download_timeout: int = 300) -> None:
    """Main provisioning workflow - every step runs in order and the first failure stops it."""
    try:
        staging_dir = tempfile.mkdtemp(prefix="nodesetup-")
    except OSError as e:
        raise StepError("create staging directory", FilesystemError(str(e))) from e

    try:
        # Phase 1: Binaries
        vega_binary = run_step(
            "download vega binary", artifacts.download_artifact,
            network.repository, settings.mainnet_version, staging_dir, ArtifactKind.VEGA,
            timeout=download_timeout,
        )
        visor_binary = run_step(
            "download visor binary", artifacts.download_artifact,
            network.repository, settings.mainnet_version, staging_dir, ArtifactKind.VISOR,
            timeout=download_timeout,
        )
        run_step("check vega version", check_binary_version, vega_binary)
        run_step("check visor version", check_binary_version, visor_binary)

        # Phase 2: Component homes, visor first since later homes depend on earlier ones
        run_step("init visor", vegacmd.init_visor, visor_binary, settings.visor_home)
        run_step("init tendermint", vegacmd.init_tendermint, vega_binary, settings.tendermint_home)
        run_step("init vega", vegacmd.init_vega, vega_binary, settings.vega_home)
        run_step("init data-node", vegacmd.init_data_node, vega_binary, settings.data_node_home,
                 settings.mainnet_chain_id)

        # Phase 3: Versioned install directory
        run_step("prepare visor home", prepare_visor_home, settings)
        run_step("copy binaries", copy_binaries, settings, vega_binary, visor_binary)

        # Phase 4: Configuration
        updates = run_step("build config updates", build_config_updates, settings, network)
        run_step("update data-node config", update_config,
                 Path(settings.data_node_home) / vegacmd.DATA_NODE_CONFIG_PATH, updates.data_node)
        run_step("update vega config", update_config,
                 Path(settings.vega_home) / vegacmd.CORE_CONFIG_PATH, updates.vega)
        run_step("update tendermint config", update_config,
                 Path(settings.tendermint_home) / vegacmd.TENDERMINT_CONFIG_PATH, updates.tendermint)
        run_step("update visor config", update_config,
                 Path(settings.visor_home) / vegacmd.VISOR_CONFIG_PATH, updates.visor)

        # Phase 5: Genesis
        run_step("download genesis", download_genesis, settings, network, timeout=download_timeout)
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)
