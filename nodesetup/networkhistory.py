"""Lookup of the latest network history snapshot."""
from typing import Any, Iterable, List, Optional

from nodesetup.errors import DownloadError, NetworkHistoryError
from nodesetup.settings import Snapshot
from nodesetup.utils import fetch_json, log_action

SNAPSHOTS_PATH = "/api/v2/snapshots"


def parse_snapshots(response: Any) -> List[Snapshot]:
    """Extract the snapshots from a data-node snapshots response.

    Raises NetworkHistoryError when the response does not have the shape of a
    snapshots listing.
    """
    if not isinstance(response, dict):
        raise NetworkHistoryError("unexpected response")
    connection = response.get("coreSnapshots") or {}
    if not isinstance(connection, dict):
        raise NetworkHistoryError("unexpected coreSnapshots in response")
    edges = connection.get("edges") or []
    if not isinstance(edges, list):
        raise NetworkHistoryError("unexpected edges in response")

    snapshots = []
    for edge in edges:
        if not isinstance(edge, dict):
            raise NetworkHistoryError("unexpected snapshot entry in response")
        node = edge.get("node") or {}
        if not isinstance(node, dict):
            raise NetworkHistoryError("unexpected snapshot entry in response")
        height = str(node.get("blockHeight", "")).strip()
        block_hash = str(node.get("blockHash", "")).strip()
        if height.isdigit() and block_hash:
            snapshots.append(Snapshot(block_height=height, block_hash=block_hash))
    return snapshots


def fetch_latest_snapshot(rest_urls: Iterable[str], timeout: int = 10) -> Optional[Snapshot]:
    """Return the snapshot with the highest block height known to any of the servers.

    Servers that cannot be queried are skipped. Returns None when the servers
    answered but none of them has a snapshot.
    """
    rest_urls = list(rest_urls)
    if not rest_urls:
        raise NetworkHistoryError("no data-node API configured for this network")

    snapshots: List[Snapshot] = []
    errors = []
    for base_url in rest_urls:
        url = base_url.rstrip("/") + SNAPSHOTS_PATH
        try:
            response = fetch_json(url, timeout=timeout)
            found = parse_snapshots(response)
        except DownloadError as e:
            log_action(f"Skipping {base_url}: {e}")
            errors.append(str(e))
            continue
        except NetworkHistoryError as e:
            log_action(f"Skipping {base_url}: {e}")
            errors.append(f"{url}: {e}")
            continue
        snapshots.extend(found)

    if len(errors) == len(rest_urls):
        raise NetworkHistoryError(f"no data-node API answered: {'; '.join(errors)}")
    if not snapshots:
        return None
    return max(snapshots, key=lambda s: int(s.block_height))
