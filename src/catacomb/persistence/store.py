from __future__ import annotations

import hashlib
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, TypeVar

from ..exceptions import CorruptRegionError, PersistenceError
from ..graph.model import Node, RegionGraph
from .codec import decode_manifest, decode_node, decode_region, encode_manifest, encode_node, encode_region
from .paths import default_store_root, ensure_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NodeStore(Protocol):
    """Key-value storage of nodes by id, plus the ordered node list of each region."""

    def load_node(self, node_id: str) -> Optional[Node]:
        ...

    def save_node(self, node: Node) -> None:
        ...

    def load_region(self, region_id: str) -> List[Node]:
        ...

    def save_region(self, region_id: str, nodes: Iterable[Node]) -> None:
        ...


class InMemoryNodeStore:
    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._regions: Dict[str, List[str]] = {}
        self._lock = threading.RLock()

    def load_node(self, node_id: str) -> Optional[Node]:
        with self._lock:
            return self._nodes.get(node_id)

    def save_node(self, node: Node) -> None:
        with self._lock:
            self._nodes[node.id] = node
            ids = self._regions.setdefault(node.region_id, [])
            if node.id not in ids:
                ids.append(node.id)

    def load_region(self, region_id: str) -> List[Node]:
        with self._lock:
            return [self._nodes[i] for i in self._regions.get(region_id, [])]

    def save_region(self, region_id: str, nodes: Iterable[Node]) -> None:
        with self._lock:
            ids = []
            for node in nodes:
                self._nodes[node.id] = node
                ids.append(node.id)
            self._regions[region_id] = ids


def _key(identifier: str) -> str:
    # Ids contain ':' and other characters that are not portable in file names
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:32]


class JsonNodeStore:
    """Node store on the local file system.

    Layout under ``root``::

        nodes/<hash of node id>.json      one node document each
        regions/<hash of region id>.json  manifest with the ordered node ids

    Every write is atomic and keeps the previous version as ``.bak``, which
    reads fall back to when the primary file is unreadable.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = ensure_dir(root or default_store_root())
        self.nodes_dir = ensure_dir(self.root / "nodes")
        self.regions_dir = ensure_dir(self.root / "regions")
        self._lock = threading.RLock()

    def node_path(self, node_id: str) -> Path:
        return self.nodes_dir / f"{_key(node_id)}.json"

    def manifest_path(self, region_id: str) -> Path:
        return self.regions_dir / f"{_key(region_id)}.json"

    # Public API

    def load_node(self, node_id: str) -> Optional[Node]:
        with self._lock:
            path = self.node_path(node_id)
            if not path.exists() and not _backup(path).exists():
                return None
            node = self._read_with_fallback(path, decode_node)
            if node.id != node_id:
                raise CorruptRegionError(f"{path} holds node {node.id}, expected {node_id}")
            return node

    def save_node(self, node: Node) -> None:
        with self._lock:
            self._atomic_write(self.node_path(node.id), encode_node(node))
            ids = self._manifest_ids(node.region_id)
            if node.id not in ids:
                ids.append(node.id)
                self._atomic_write(self.manifest_path(node.region_id), encode_manifest(node.region_id, ids))

    def load_region(self, region_id: str) -> List[Node]:
        with self._lock:
            nodes = []
            for node_id in self._manifest_ids(region_id):
                node = self.load_node(node_id)
                if node is None:
                    raise CorruptRegionError(f"Region {region_id} lists missing node {node_id}")
                nodes.append(node)
            return nodes

    def save_region(self, region_id: str, nodes: Iterable[Node]) -> None:
        with self._lock:
            ids = []
            for node in nodes:
                if node.region_id != region_id:
                    raise PersistenceError(f"Node {node.id} belongs to {node.region_id}, not {region_id}")
                self._atomic_write(self.node_path(node.id), encode_node(node))
                ids.append(node.id)
            self._atomic_write(self.manifest_path(region_id), encode_manifest(region_id, ids))
            logger.info("Saved region %s (%d nodes) to %s", region_id, len(ids), self.root)

    # Internal utilities

    def _manifest_ids(self, region_id: str) -> List[str]:
        path = self.manifest_path(region_id)
        if not path.exists() and not _backup(path).exists():
            return []
        stored_region, ids = self._read_with_fallback(path, decode_manifest)
        if stored_region != region_id:
            raise CorruptRegionError(f"{path} holds region {stored_region}, expected {region_id}")
        return ids

    def _read_with_fallback(self, path: Path, decode: Callable[[str], T]) -> T:
        try:
            return decode(path.read_text(encoding="utf-8"))
        except (OSError, PersistenceError) as primary:
            bak = _backup(path)
            if bak.exists():
                try:
                    value = decode(bak.read_text(encoding="utf-8"))
                except (OSError, PersistenceError) as e:
                    logger.debug("Backup %s unreadable as well: %s", bak, e)
                else:
                    logger.warning("Recovered %s from backup after: %s", path, primary)
                    return value
            raise CorruptRegionError(f"Unable to load {path}: {primary}") from primary

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write via a temp file, keeping the previous version as ``.bak``."""
        tmp = path.with_suffix(path.suffix + ".tmp")
        bak = _backup(path)
        ensure_dir(path.parent)
        with tmp.open("w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.replace(path, bak)
        os.replace(tmp, path)
        if not bak.exists():
            shutil.copy2(path, bak)


def _backup(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".bak")


def save_graph(store: NodeStore, graph: RegionGraph) -> None:
    store.save_region(graph.region_id, graph.nodes)


def load_graph(store: NodeStore, region_id: str) -> Optional[RegionGraph]:
    """The stored region, or None when nothing is stored under ``region_id``."""
    nodes = store.load_region(region_id)
    if not nodes:
        return None
    return RegionGraph(region_id=region_id, nodes=tuple(nodes))


def export_region(graph: RegionGraph, path: Path) -> Path:
    """Write the whole region as a single JSON document."""
    ensure_dir(path.parent)
    path.write_text(encode_region(graph), encoding="utf-8")
    logger.info("Exported region %s to %s", graph.region_id, path)
    return path


def import_region(path: Path) -> RegionGraph:
    return decode_region(path.read_text(encoding="utf-8"))
