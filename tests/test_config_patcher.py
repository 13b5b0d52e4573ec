"""Tests for TOML config patching."""
import pytest
import tomlkit
from pathlib import Path
from unittest.mock import patch

from nodesetup.config_patcher import get_config_value, load_config, update_config
from nodesetup.errors import ConfigError, ConfigLoadError, ConfigWriteError

TENDERMINT_CONFIG = '''# Tendermint configuration
proxy_app = "tcp://127.0.0.1:26658"
moniker = "node"

[p2p]
# comma separated list of seed nodes
seeds = ""
pex = false
max_num_inbound_peers = 40

[statesync]
enable = false
rpc_servers = ""
trust_height = 0
trust_hash = ""
trust_period = "168h0m0s"
'''


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(TENDERMINT_CONFIG)
    return path


class TestUpdateConfig:
    """Tests for update_config."""

    def test_empty_update_keeps_bytes(self, config_file):
        """Test patching with no keys writes back the identical document."""
        update_config(config_file, {})

        assert config_file.read_text() == TENDERMINT_CONFIG

    def test_new_nested_key_keeps_unrelated_key(self, tmp_path):
        """Test {a.b = 1} on a document holding c = 2 keeps both."""
        path = tmp_path / "doc.toml"
        path.write_text("c = 2\n")

        update_config(path, {"a.b": 1})

        doc = tomlkit.parse(path.read_text())
        assert doc["c"] == 2
        assert doc["a"]["b"] == 1

    def test_overwrites_existing_keys_in_place(self, config_file):
        """Test existing keys are replaced without reordering the document."""
        update_config(config_file, {"statesync.enable": True, "statesync.trust_height": 1000})

        content = config_file.read_text()
        assert "enable = true" in content
        assert "trust_height = 1000" in content
        assert "trust_height = 0" not in content
        # order of the statesync table is unchanged
        assert content.index("enable = true") < content.index("rpc_servers") < content.index("trust_height")
        assert content.startswith("# Tendermint configuration\n")
        assert "# comma separated list of seed nodes" in content

    def test_unrelated_keys_preserved(self, config_file):
        """Test keys that are not updated keep their values."""
        update_config(config_file, {"p2p.seeds": "a@1.2.3.4:26656,b@5.6.7.8:26656"})

        assert get_config_value(config_file, "p2p.seeds") == "a@1.2.3.4:26656,b@5.6.7.8:26656"
        assert get_config_value(config_file, "p2p.max_num_inbound_peers") == 40
        assert get_config_value(config_file, "moniker") == "node"
        assert get_config_value(config_file, "statesync.trust_period") == "168h0m0s"

    def test_supported_value_types(self, tmp_path):
        """Test strings, ints, floats, bools and string lists are written with their types."""
        path = tmp_path / "data-node.toml"
        path.write_text("[API]\n")

        update_config(path, {
            "API.RateLimit.Rate": 300.0,
            "API.RateLimit.Burst": 1000,
            "SQLStore.WipeOnStartup": True,
            "NetworkHistory.Initialise.Timeout": "4h",
            "NetworkHistory.Store.BootstrapPeers": ["/dns/a/tcp/4001", "/dns/b/tcp/4001"],
            "Snapshot.StartHeight": -1,
        })

        assert get_config_value(path, "API.RateLimit.Rate") == 300.0
        assert isinstance(get_config_value(path, "API.RateLimit.Rate"), float)
        assert get_config_value(path, "API.RateLimit.Burst") == 1000
        assert get_config_value(path, "SQLStore.WipeOnStartup") is True
        assert get_config_value(path, "NetworkHistory.Initialise.Timeout") == "4h"
        assert get_config_value(path, "NetworkHistory.Store.BootstrapPeers") == ["/dns/a/tcp/4001", "/dns/b/tcp/4001"]
        assert get_config_value(path, "Snapshot.StartHeight") == -1

    def test_key_through_scalar_fails(self, config_file):
        """Test a dotted path that crosses a non-table value is rejected."""
        with pytest.raises(ConfigError, match="not a table"):
            update_config(config_file, {"moniker.name": "x"})


class TestConfigErrors:
    """Tests for load and write failures."""

    def test_missing_file(self, tmp_path):
        """Test a missing document raises ConfigLoadError."""
        with pytest.raises(ConfigLoadError):
            update_config(tmp_path / "missing.toml", {"a": 1})

    def test_malformed_file(self, tmp_path):
        """Test a malformed document raises ConfigLoadError."""
        path = tmp_path / "broken.toml"
        path.write_text("[p2p\nseeds = \n")

        with pytest.raises(ConfigLoadError):
            load_config(path)

    def test_write_failure(self, config_file):
        """Test a failing write raises ConfigWriteError."""
        with patch.object(Path, 'write_text', side_effect=OSError("No space left on device")):
            with pytest.raises(ConfigWriteError, match="No space left"):
                update_config(config_file, {"moniker": "other"})

    def test_missing_key_on_read(self, config_file):
        """Test reading a missing key raises KeyError."""
        with pytest.raises(KeyError):
            get_config_value(config_file, "statesync.missing")
