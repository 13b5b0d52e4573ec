"""Tests for release artifact resolution and download."""
import os
import zipfile
import pytest
import sh
from pathlib import Path
from unittest.mock import patch

from nodesetup.artifacts import (
    ArtifactKind, asset_name, binary_name, current_arch, current_os,
    download_artifact, extract_binary, find_asset_url,
)
from nodesetup.errors import ArtifactDownloadError, ArtifactNotFoundError, DownloadError, HTTPError

RELEASE = {
    "tag_name": "v0.72.14",
    "assets": [
        {"name": "vega-linux-amd64.zip", "browser_download_url": "https://github.com/dl/vega-linux-amd64.zip"},
        {"name": "visor-linux-amd64.zip", "browser_download_url": "https://github.com/dl/visor-linux-amd64.zip"},
    ],
}


def make_zip(path, member, content=b"#!/bin/sh\necho v0.72.14\n"):
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(member, content)


class TestAssetName:
    """Tests for platform specific asset names."""

    def test_repository_binary_name(self):
        """Test org/proj on linux/amd64 resolves to proj-linux-amd64.zip."""
        assert asset_name(ArtifactKind.VEGA, "org/proj", "linux", "amd64") == "proj-linux-amd64.zip"

    def test_visor_asset(self):
        """Test the supervisor asset is always named visor."""
        assert asset_name(ArtifactKind.VISOR, "vegaprotocol/vega", "Darwin", "arm64") == "visor-darwin-arm64.zip"

    @pytest.mark.parametrize("machine,expected", [
        ("x86_64", "amd64"),
        ("AMD64", "amd64"),
        ("aarch64", "arm64"),
        ("arm64", "arm64"),
        ("riscv64", "riscv64"),
    ])
    def test_arch_aliases(self, machine, expected):
        """Test machine names are mapped to release architecture names."""
        assert current_arch(machine) == expected

    @patch('nodesetup.artifacts.platform.system')
    def test_os_from_platform(self, mock_system):
        """Test the OS name is read from the platform and lowercased."""
        mock_system.return_value = 'Linux'

        assert current_os() == "linux"

    def test_binary_names(self):
        """Test the executable names inside the archives."""
        assert binary_name(ArtifactKind.VEGA, "vegaprotocol/vega") == "vega"
        assert binary_name(ArtifactKind.VISOR, "vegaprotocol/vega") == "visor"


class TestFindAssetUrl:
    """Tests for GitHub release lookup."""

    @patch('nodesetup.artifacts.fetch_json')
    def test_asset_found(self, mock_fetch):
        """Test the download URL of a matching asset is returned."""
        mock_fetch.return_value = RELEASE

        url = find_asset_url("vegaprotocol/vega", "v0.72.14", "visor-linux-amd64.zip")

        assert url == "https://github.com/dl/visor-linux-amd64.zip"
        mock_fetch.assert_called_once_with(
            "https://api.github.com/repos/vegaprotocol/vega/releases/tags/v0.72.14", timeout=30
        )

    @patch('nodesetup.artifacts.fetch_json')
    def test_asset_missing_for_platform(self, mock_fetch):
        """Test a release without the platform asset raises ArtifactNotFoundError."""
        mock_fetch.return_value = RELEASE

        with pytest.raises(ArtifactNotFoundError, match="vega-windows-amd64.zip"):
            find_asset_url("vegaprotocol/vega", "v0.72.14", "vega-windows-amd64.zip")

    @patch('nodesetup.artifacts.fetch_json')
    def test_release_missing(self, mock_fetch):
        """Test an unknown tag raises ArtifactNotFoundError."""
        mock_fetch.side_effect = HTTPError("The requested URL returned error: 404", status=404)

        with pytest.raises(ArtifactNotFoundError):
            find_asset_url("vegaprotocol/vega", "v9.9.9", "vega-linux-amd64.zip")

    @pytest.mark.parametrize("status", [403, 500, 503, None])
    @patch('nodesetup.artifacts.fetch_json')
    def test_http_error_other_than_not_found(self, mock_fetch, status):
        """Test rate limits and server errors raise ArtifactDownloadError, not ArtifactNotFoundError."""
        mock_fetch.side_effect = HTTPError(f"The requested URL returned error: {status}", status=status)

        with pytest.raises(ArtifactDownloadError):
            find_asset_url("vegaprotocol/vega", "v0.72.14", "vega-linux-amd64.zip")

    @patch('nodesetup.utils.sh.curl', create=True)
    def test_server_error_through_curl(self, mock_curl):
        """Test a 503 reported by curl is a download failure."""
        mock_curl.side_effect = sh.ErrorReturnCode_22(
            "curl", b"", b"curl: (22) The requested URL returned error: 503"
        )

        with pytest.raises(ArtifactDownloadError, match="503"):
            find_asset_url("vegaprotocol/vega", "v0.72.14", "vega-linux-amd64.zip")

    @patch('nodesetup.utils.sh.curl', create=True)
    def test_not_found_through_curl(self, mock_curl):
        """Test a 404 reported by curl means the release does not exist."""
        mock_curl.side_effect = sh.ErrorReturnCode_22(
            "curl", b"", b"curl: (22) The requested URL returned error: 404"
        )

        with pytest.raises(ArtifactNotFoundError):
            find_asset_url("vegaprotocol/vega", "v9.9.9", "vega-linux-amd64.zip")

    @patch('nodesetup.artifacts.fetch_json')
    def test_transport_failure(self, mock_fetch):
        """Test a transport failure raises ArtifactDownloadError."""
        mock_fetch.side_effect = DownloadError("connection refused")

        with pytest.raises(ArtifactDownloadError):
            find_asset_url("vegaprotocol/vega", "v0.72.14", "vega-linux-amd64.zip")


class TestExtractBinary:
    """Tests for archive extraction."""

    def test_binary_is_executable(self, tmp_path):
        """Test the extracted binary has the executable bit set."""
        archive = tmp_path / "vega-linux-amd64.zip"
        make_zip(archive, "vega")

        binary = extract_binary(archive, "vega", tmp_path)

        assert binary == tmp_path / "vega"
        assert os.access(binary, os.X_OK)

    def test_binary_in_subdirectory(self, tmp_path):
        """Test a binary nested in the archive is found by name."""
        archive = tmp_path / "visor.zip"
        make_zip(archive, "dist/visor")

        assert extract_binary(archive, "visor", tmp_path).read_bytes().startswith(b"#!/bin/sh")

    def test_binary_missing_from_archive(self, tmp_path):
        """Test an archive without the binary raises ArtifactDownloadError."""
        archive = tmp_path / "vega.zip"
        make_zip(archive, "README.md")

        with pytest.raises(ArtifactDownloadError, match="does not contain vega"):
            extract_binary(archive, "vega", tmp_path)

    def test_corrupt_archive(self, tmp_path):
        """Test a corrupt download raises ArtifactDownloadError."""
        archive = tmp_path / "vega.zip"
        archive.write_bytes(b"not a zip")

        with pytest.raises(ArtifactDownloadError, match="not a valid zip"):
            extract_binary(archive, "vega", tmp_path)

    @patch('nodesetup.artifacts.shutil.copyfileobj')
    def test_binary_is_streamed(self, mock_copy, tmp_path):
        """Test the binary is copied out of the archive in chunks."""
        archive = tmp_path / "vega.zip"
        make_zip(archive, "vega")

        extract_binary(archive, "vega", tmp_path)

        mock_copy.assert_called_once()


class TestDownloadArtifact:
    """Tests for the full acquisition."""

    @patch('nodesetup.artifacts.current_arch', return_value='amd64')
    @patch('nodesetup.artifacts.current_os', return_value='linux')
    @patch('nodesetup.artifacts.download_file')
    @patch('nodesetup.artifacts.fetch_json')
    def test_download_and_extract(self, mock_fetch, mock_download, mock_os, mock_arch, tmp_path):
        """Test the asset is downloaded into the output directory and unpacked."""
        mock_fetch.return_value = RELEASE
        mock_download.side_effect = lambda url, dest, timeout: make_zip(dest, "vega")

        binary = download_artifact("vegaprotocol/vega", "v0.72.14", tmp_path, ArtifactKind.VEGA, timeout=60)

        assert binary == tmp_path / "vega"
        assert os.access(binary, os.X_OK)
        mock_download.assert_called_once_with(
            "https://github.com/dl/vega-linux-amd64.zip", tmp_path / "vega-linux-amd64.zip", timeout=60
        )

    @patch('nodesetup.artifacts.current_arch', return_value='amd64')
    @patch('nodesetup.artifacts.current_os', return_value='linux')
    @patch('nodesetup.artifacts.download_file')
    @patch('nodesetup.artifacts.fetch_json')
    def test_download_failure(self, mock_fetch, mock_download, mock_os, mock_arch, tmp_path):
        """Test a failed transfer raises ArtifactDownloadError."""
        mock_fetch.return_value = RELEASE
        mock_download.side_effect = DownloadError("connection reset")

        with pytest.raises(ArtifactDownloadError, match="connection reset"):
            download_artifact("vegaprotocol/vega", "v0.72.14", tmp_path, ArtifactKind.VISOR)
