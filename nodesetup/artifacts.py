"""Download of release binaries from GitHub."""
import os
import platform
import shutil
import stat
import zipfile
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from nodesetup.errors import ArtifactDownloadError, ArtifactNotFoundError, DownloadError, HTTPError
from nodesetup.utils import download_file, fetch_json, log_action

GITHUB_API_URL = "https://api.github.com"
HTTP_NOT_FOUND = 404

MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


class ArtifactKind(Enum):
    VEGA = "vega"
    VISOR = "visor"


def current_os(system: Optional[str] = None) -> str:
    """Operating system name as used in release asset names."""
    return (system or platform.system()).lower()


def current_arch(machine: Optional[str] = None) -> str:
    """CPU architecture as used in release asset names."""
    machine = (machine or platform.machine()).lower()
    return MACHINE_ALIASES.get(machine, machine)


def binary_name(kind: ArtifactKind, repository: str) -> str:
    """Name of the executable shipped in the artifact.

    The node binary is named after the repository, the supervisor is always "visor".
    """
    if kind is ArtifactKind.VEGA:
        return repository.split("/")[-1]
    if kind is ArtifactKind.VISOR:
        return "visor"
    raise ValueError(f"Unknown artifact kind: {kind}")


def asset_name(kind: ArtifactKind, repository: str, system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Release asset file name for the artifact on the given platform."""
    return f"{binary_name(kind, repository)}-{current_os(system)}-{current_arch(machine)}.zip"


def find_asset_url(repository: str, version: str, name: str, timeout: int = 30) -> str:
    """Return the download URL of the named asset of a tagged release."""
    url = f"{GITHUB_API_URL}/repos/{repository}/releases/tags/{version}"
    try:
        release = fetch_json(url, timeout=timeout)
    except DownloadError as e:
        if isinstance(e, HTTPError) and e.status == HTTP_NOT_FOUND:
            raise ArtifactNotFoundError(f"release {version} not found in {repository}: {e}") from e
        raise ArtifactDownloadError(f"cannot query release {version} of {repository}: {e}") from e

    for asset in release.get("assets", []):
        if asset.get("name") == name:
            return asset["browser_download_url"]
    raise ArtifactNotFoundError(f"release {version} of {repository} has no asset {name}")


def extract_binary(archive_path: Union[str, Path], name: str, output_dir: Union[str, Path]) -> Path:
    """Extract the named binary from a zip archive and make it executable."""
    output_dir = Path(output_dir)
    try:
        with zipfile.ZipFile(archive_path) as archive:
            members = [m for m in archive.namelist() if Path(m).name == name]
            if not members:
                raise ArtifactDownloadError(f"{archive_path} does not contain {name}")
            binary_path = output_dir / name
            with archive.open(members[0]) as src, open(binary_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
        mode = os.stat(binary_path).st_mode
        os.chmod(binary_path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except zipfile.BadZipFile as e:
        raise ArtifactDownloadError(f"{archive_path} is not a valid zip archive: {e}") from e
    except OSError as e:
        raise ArtifactDownloadError(f"cannot extract {name} from {archive_path}: {e}") from e
    return binary_path


def download_artifact(
    repository: str,
    version: str,
    output_dir: Union[str, Path],
    kind: ArtifactKind,
    timeout: int = 300,
) -> Path:
    """Download the artifact for the current platform and return the executable path."""
    name = asset_name(kind, repository)
    url = find_asset_url(repository, version, name, timeout=timeout)

    archive_path = Path(output_dir) / name
    log_action(f"Downloading {url}")
    try:
        download_file(url, archive_path, timeout=timeout)
    except DownloadError as e:
        raise ArtifactDownloadError(f"failed to download {name}: {e}") from e

    return extract_binary(archive_path, binary_name(kind, repository), output_dir)
