"""CLI interface for the setup assistant."""
import typer

from . import database, network, networkhistory, steps, utils, wizard
from .errors import InputAbortedError, NodeSetupError
from .prompter import TerminalPrompter

# conventional exit status for an interrupted program
EXIT_ABORTED = 130

app = typer.Typer(
    name="nodesetup",
    help="Interactive setup assistant for Vega data-nodes.",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Interactive setup assistant for Vega data-nodes."""
    utils.setup_logging(verbose)


@app.command("data-node")
def data_node(
    network_name: str = typer.Option(
        "mainnet", "--network", envvar="NODESETUP_NETWORK", help="Network to join"
    ),
    download_timeout: int = typer.Option(
        300, "--download-timeout", envvar="NODESETUP_DOWNLOAD_TIMEOUT", min=1,
        help="Seconds allowed for each download",
    ),
    probe_timeout: int = typer.Option(
        10, "--probe-timeout", envvar="NODESETUP_PROBE_TIMEOUT", min=1,
        help="Seconds allowed for database and API checks",
    ),
):
    """Prepare a data-node on this computer."""
    try:
        network_config = network.get_network_config(network_name)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--network")

    machine = wizard.SetupStateMachine(
        prompter=TerminalPrompter(),
        network=network_config,
        check_sql=lambda credentials: database.check_sql_connection(credentials, timeout=probe_timeout),
        fetch_snapshot=lambda config: networkhistory.fetch_latest_snapshot(
            config.data_node_rest_urls, timeout=probe_timeout
        ),
    )

    try:
        settings = machine.run()
    except InputAbortedError:
        typer.echo("\nSetup aborted.")
        raise typer.Exit(EXIT_ABORTED)
    except NodeSetupError as e:
        typer.echo(f"❗ Failed to collect data-node settings: {e}", err=True)
        raise typer.Exit(1)

    try:
        steps.provision_data_node(settings, network_config, download_timeout=download_timeout)
    except NodeSetupError as e:
        typer.echo(f"❗ Failed to setup data-node: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("✅ Data-node setup complete!")


if __name__ == "__main__":
    app()
