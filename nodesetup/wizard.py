"""Interactive interview that collects the data-node settings."""
import os
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from nodesetup.errors import ExternalServiceError, ValidationError
from nodesetup.network import NetworkConfig
from nodesetup.prompter import Prompter, ask_yes_no
from nodesetup.settings import MAX_PORT, MIN_PORT, SettingsModel, Snapshot, SQLCredentials, StartupMode
from nodesetup.utils import file_exists, log_info

SQLCheck = Callable[[SQLCredentials], None]
SnapshotSource = Callable[[NetworkConfig], Optional[Snapshot]]

STARTUP_MODE_QUESTION = """How do you want to start your data-node?

  - Starting from block 0 - Starts the node from the genesis binary, replays all the blocks and
                            does all of the protocol upgrades automatically.
        * Depending on network age it can take up to several days to catch your node up.
        * Full network history is available on your node.

  - Starting from network history - Start the node from the latest binary, and download all
                                    required information from the running network.
        * It takes up to several minutes.
        * No historical data is available on your node."""

DEFAULT_SQL_CREDENTIALS = SQLCredentials(
    host="localhost",
    port=5432,
    user="vega",
    password="vega",
    database_name="vega",
)

# (field name, description, default directory name under the base directory)
HOME_DIRECTORIES = [
    ("visor_home", "vegavisor home", "vegavisor_home"),
    ("vega_home", "vega home", "vega_home"),
    ("tendermint_home", "tendermint home", "tendermint_home"),
    ("data_node_home", "data-node home", "data_node_home"),
]


class SetupState(Enum):
    SELECT_MODE = "select mode"
    ASK_PATHS = "ask paths"
    ASK_SQL_CREDENTIALS = "ask sql credentials"
    FETCH_SNAPSHOT = "fetch snapshot"
    SUMMARIZE = "summarize"
    DONE = "done"


def default_base_dir() -> str:
    return os.path.join(os.path.expanduser("~"), "vega")


def normalize_path(path: str) -> str:
    return os.path.abspath(os.path.expanduser(path.strip()))


def path_validator(taken: List[str]) -> Callable[[str], None]:
    """Reject paths that already exist on disk or were already chosen."""
    def validate(value: str) -> None:
        path = normalize_path(value)
        if file_exists(path):
            raise ValidationError(
                "given path exists on your fs, remove this file or provide another directory"
            )
        if path in taken:
            raise ValidationError("this directory is already used for another home")
    return validate


def port_validator(value: str) -> None:
    try:
        port = int(value)
    except ValueError:
        raise ValidationError(f"port must be numeric, got {value}") from None
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValidationError(f"port must be between {MIN_PORT} and {MAX_PORT}")


def select_startup_mode(prompter: Prompter, default: StartupMode = StartupMode.FROM_NETWORK_HISTORY) -> StartupMode:
    options = [StartupMode.FROM_GENESIS.value, StartupMode.FROM_NETWORK_HISTORY.value]
    answer = prompter.select(STARTUP_MODE_QUESTION, options, default.value)
    return StartupMode(answer)


def ask_path(prompter: Prompter, name: str, default: str, taken: Optional[List[str]] = None) -> str:
    answer = prompter.ask(f"What is your {name}", default, path_validator(taken or []))
    return normalize_path(answer)


def ask_sql_credentials(prompter: Prompter, default: SQLCredentials, check: SQLCheck) -> SQLCredentials:
    """Collect database credentials until the check passes or the operator accepts them anyway."""
    prompter.echo("PostgreSQL server must be running and you MUST install the TimescaleDB v2.8.0")
    while True:
        host = prompter.ask("PostgreSQL host for the data-node", default.host)
        port = prompter.ask("PostgreSQL port for the data-node", str(default.port), port_validator)
        user = prompter.ask("PostgreSQL user name for the data-node", default.user)
        password = prompter.ask("PostgreSQL password for the given username", default.password)
        database_name = prompter.ask("PostgreSQL database name for the data-node", default.database_name)
        credentials = SQLCredentials(
            host=host,
            port=int(port),
            user=user,
            password=password,
            database_name=database_name,
        )

        try:
            check(credentials)
        except ExternalServiceError as e:
            question = f"Cannot connect to the database with given credentials ({e}). Try again?"
            if ask_yes_no(prompter, question):
                default = credentials
                continue
            log_info("Continuing with unverified database credentials.")
        return credentials


def summary_rows(settings: SettingsModel) -> List[Tuple[str, str]]:
    rows = [
        ("Mode", settings.mode.value),
        ("Visor Home", settings.visor_home),
        ("Vega Home", settings.vega_home),
        ("Tendermint Home", settings.tendermint_home),
        ("Data-node Home", settings.data_node_home),
        ("SQL Host", settings.sql_credentials.host),
        ("SQL Port", str(settings.sql_credentials.port)),
        ("SQL User", settings.sql_credentials.user),
        ("SQL Password", settings.sql_credentials.masked_password()),
        ("SQL Database Name", settings.sql_credentials.database_name),
        ("Vega Version", settings.mainnet_version),
        ("Vega Chain ID", settings.mainnet_chain_id),
    ]
    if settings.latest_snapshot is not None:
        rows.append(("Snapshot Height", settings.latest_snapshot.block_height))
        rows.append(("Snapshot Hash", settings.latest_snapshot.block_hash))
    return rows


def print_summary(settings: SettingsModel, console: Optional[Console] = None) -> None:
    table = Table(title="Summary", header_style="bold green underline")
    table.add_column("Parameter", style="yellow")
    table.add_column("Value")
    for name, value in summary_rows(settings):
        table.add_row(name, value)
    (console or Console()).print(table)


class SetupStateMachine:
    """Runs the interview one state at a time and produces a SettingsModel."""

    def __init__(
        self,
        prompter: Prompter,
        network: NetworkConfig,
        check_sql: SQLCheck,
        fetch_snapshot: SnapshotSource,
        render_summary: Callable[[SettingsModel], None] = print_summary,
        base_dir: Optional[str] = None,
    ):
        self.prompter = prompter
        self.network = network
        self.check_sql = check_sql
        self.fetch_snapshot = fetch_snapshot
        self.render_summary = render_summary
        self.base_dir = base_dir or default_base_dir()

        self.state = SetupState.SELECT_MODE
        self.mode: Optional[StartupMode] = None
        self.homes: Dict[str, str] = {}
        self.sql_credentials: Optional[SQLCredentials] = None
        self.latest_snapshot: Optional[Snapshot] = None
        self.settings: Optional[SettingsModel] = None

        self._handlers = {
            SetupState.SELECT_MODE: self._select_mode,
            SetupState.ASK_PATHS: self._ask_paths,
            SetupState.ASK_SQL_CREDENTIALS: self._ask_sql_credentials,
            SetupState.FETCH_SNAPSHOT: self._fetch_snapshot,
            SetupState.SUMMARIZE: self._summarize,
        }

    def run(self) -> SettingsModel:
        while self.state is not SetupState.DONE:
            self.state = self._handlers[self.state]()
        return self.settings

    def _select_mode(self) -> SetupState:
        self.mode = select_startup_mode(self.prompter)
        return SetupState.ASK_PATHS

    def _ask_paths(self) -> SetupState:
        for field, name, dirname in HOME_DIRECTORIES:
            default = os.path.join(self.base_dir, dirname)
            self.homes[field] = ask_path(self.prompter, name, default, list(self.homes.values()))
        return SetupState.ASK_SQL_CREDENTIALS

    def _ask_sql_credentials(self) -> SetupState:
        self.sql_credentials = ask_sql_credentials(self.prompter, DEFAULT_SQL_CREDENTIALS, self.check_sql)
        return SetupState.FETCH_SNAPSHOT

    def _fetch_snapshot(self) -> SetupState:
        if self.mode is StartupMode.FROM_NETWORK_HISTORY:
            log_info("Looking up the latest network history snapshot...")
            snapshot = self.fetch_snapshot(self.network)
            if snapshot is None:
                raise ValidationError("no network history snapshot is available, cannot start from network history")
            log_info(f"Latest snapshot at block {snapshot.block_height} ({snapshot.block_hash})")
            self.latest_snapshot = snapshot
        elif self.mode is StartupMode.FROM_GENESIS:
            self.latest_snapshot = None
        else:
            raise ValidationError(f"unsupported startup mode: {self.mode}")
        return SetupState.SUMMARIZE

    def _summarize(self) -> SetupState:
        self.settings = SettingsModel(
            mode=self.mode,
            sql_credentials=self.sql_credentials,
            mainnet_version=self.network.genesis_version,
            mainnet_chain_id=self.network.chain_id,
            latest_snapshot=self.latest_snapshot,
            **self.homes,
        )
        self.render_summary(self.settings)
        return SetupState.DONE
