"""Node storage: the key-value protocol the generator saves into, plus two backends."""
from .codec import SCHEMA_VERSION, decode_node, decode_region, encode_node, encode_region
from .paths import default_store_root
from .store import (
    InMemoryNodeStore,
    JsonNodeStore,
    NodeStore,
    export_region,
    import_region,
    load_graph,
    save_graph,
)

__all__ = [
    "SCHEMA_VERSION",
    "decode_node",
    "decode_region",
    "encode_node",
    "encode_region",
    "default_store_root",
    "InMemoryNodeStore",
    "JsonNodeStore",
    "NodeStore",
    "export_region",
    "import_region",
    "load_graph",
    "save_graph",
]
