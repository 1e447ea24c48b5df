"""
Data ingestion for ndmap.

Schema:
- nodes: REQUIRED id, x, y; OPTIONAL cluster, label, trait columns
- edges: REQUIRED source, target; OPTIONAL weight
"""

from .schema import (
    SchemaError,
    SchemaField,
    ColumnMapping,
    NODE_SCHEMA,
    EDGE_SCHEMA,
    resolve_columns,
    parse_float,
    parse_weight,
    normalize_cluster,
    map_nodes,
    map_edges,
    build_dataset,
)
from .fetch import DatasetLoader, parse_csv, is_url

__all__ = [
    # Schema
    "SchemaError",
    "SchemaField",
    "ColumnMapping",
    "NODE_SCHEMA",
    "EDGE_SCHEMA",
    "resolve_columns",
    "parse_float",
    "parse_weight",
    "normalize_cluster",
    "map_nodes",
    "map_edges",
    "build_dataset",
    # Loading
    "DatasetLoader",
    "parse_csv",
    "is_url",
]
