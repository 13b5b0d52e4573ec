"""Settings collected by the setup interview."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nodesetup.errors import ValidationError

MIN_PORT = 1
MAX_PORT = 65535


class StartupMode(Enum):
    """How the new node obtains the network state."""

    FROM_GENESIS = "Starting from block 0"
    FROM_NETWORK_HISTORY = "Starting from network history"


@dataclass(frozen=True)
class SQLCredentials:
    """Connection parameters for the data-node PostgreSQL database."""

    host: str
    port: int
    user: str
    password: str
    database_name: str

    def __post_init__(self):
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValidationError(f"port must be between {MIN_PORT} and {MAX_PORT}, got {self.port}")

    def masked_password(self) -> str:
        """Return the password with everything but the first and last character hidden."""
        if len(self.password) < 2:
            return "***"
        return f"{self.password[0]}***{self.password[-1]}"


@dataclass(frozen=True)
class Snapshot:
    """A trusted checkpoint used for state-sync."""

    block_height: str
    block_hash: str

    def trust_height(self) -> int:
        """Block height as an integer."""
        try:
            return int(self.block_height)
        except ValueError as e:
            raise ValidationError(f"snapshot block height is not an integer: {self.block_height!r}") from e


@dataclass(frozen=True)
class SettingsModel:
    """Validated answers handed from the interview to the provisioning pipeline."""

    mode: StartupMode
    visor_home: str
    vega_home: str
    tendermint_home: str
    data_node_home: str
    sql_credentials: SQLCredentials
    mainnet_version: str
    mainnet_chain_id: str
    latest_snapshot: Optional[Snapshot] = None

    def __post_init__(self):
        homes = [self.visor_home, self.vega_home, self.tendermint_home, self.data_node_home]
        if len(set(homes)) != len(homes):
            raise ValidationError("visor, vega, tendermint and data-node homes must be distinct")

        if self.mode is StartupMode.FROM_NETWORK_HISTORY:
            snapshot = self.latest_snapshot
            if snapshot is None or not snapshot.block_hash or not snapshot.block_height:
                raise ValidationError("starting from network history requires the latest snapshot")
        elif self.mode is StartupMode.FROM_GENESIS:
            if self.latest_snapshot is not None:
                raise ValidationError("a snapshot cannot be used when starting from block 0")
        else:
            raise ValidationError(f"unsupported startup mode: {self.mode}")

    @property
    def install_version(self) -> str:
        """Name of the versioned directory inside the visor home."""
        if self.mode is StartupMode.FROM_GENESIS:
            return "genesis"
        return self.mainnet_version
