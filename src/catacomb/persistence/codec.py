from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Sequence, Tuple

from jsonschema import Draft202012Validator

from ..exceptions import RegionValidationError
from ..graph.model import Node, RegionGraph

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

NODE_SCHEMA = "node.schema.json"
MANIFEST_SCHEMA = "manifest.schema.json"
REGION_SCHEMA = "region.schema.json"


@lru_cache(maxsize=None)
def _load_schema(name: str) -> Dict[str, Any]:
    """Packaged JSON schema by file name. Cached, the schemas are static."""
    resource = resources.files("catacomb.data").joinpath("schemas").joinpath(name)
    with resource.open("r", encoding="utf-8") as f:
        logger.debug("Loading schema %s", name)
        return json.load(f)


def validate_document(data: Dict[str, Any], schema_name: str) -> None:
    """Raise RegionValidationError if ``data`` does not match the named schema."""
    validator = Draft202012Validator(_load_schema(schema_name))
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        for err in errors:
            logger.error("Schema %s violation at %s: %s", schema_name, list(err.path), err.message)
        first = errors[0]
        raise RegionValidationError(f"{schema_name}: {first.message} at {list(first.path)}")


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2)


def _loads(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RegionValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise RegionValidationError("Top-level JSON value must be an object")
    version = int(data.get("schema_version", SCHEMA_VERSION))
    if version != SCHEMA_VERSION:
        data = migrate_data(data, from_version=version, to_version=SCHEMA_VERSION)
    return data


def migrate_data(data: Dict[str, Any], from_version: int, to_version: int) -> Dict[str, Any]:
    """Bring a stored document up to ``to_version``. Version 1 is the only one so far."""
    if from_version == to_version:
        return data
    if from_version > to_version:
        raise RegionValidationError(
            f"Document schema version {from_version} is newer than supported {to_version}."
        )
    data["schema_version"] = to_version
    return data


def encode_node(node: Node) -> str:
    data = node.to_dict()
    data["schema_version"] = SCHEMA_VERSION
    return _dumps(data)


def decode_node(text: str) -> Node:
    data = _loads(text)
    validate_document(data, NODE_SCHEMA)
    return Node.from_dict(data)


def encode_manifest(region_id: str, node_ids: Sequence[str]) -> str:
    return _dumps({"schema_version": SCHEMA_VERSION, "region_id": region_id, "node_ids": list(node_ids)})


def decode_manifest(text: str) -> Tuple[str, List[str]]:
    data = _loads(text)
    validate_document(data, MANIFEST_SCHEMA)
    return data["region_id"], list(data["node_ids"])


def encode_region(graph: RegionGraph) -> str:
    """Whole region as one document, node order preserved (the first node is the entry)."""
    data = graph.to_dict()
    data["schema_version"] = SCHEMA_VERSION
    return _dumps(data)


def decode_region(text: str) -> RegionGraph:
    data = _loads(text)
    validate_document(data, REGION_SCHEMA)
    nodes = []
    for raw in data["nodes"]:
        validate_document(raw, NODE_SCHEMA)
        node = Node.from_dict(raw)
        if node.region_id != data["region_id"]:
            raise RegionValidationError(f"Node {node.id} belongs to {node.region_id}, not {data['region_id']}")
        nodes.append(node)
    return RegionGraph(region_id=data["region_id"], nodes=tuple(nodes))
