"""
Column schema for the node and edge tables.

Source CSVs come from different exports, so every field lists the column
spellings it accepts. For each row the first alias column holding a
non-empty value wins.

Schema:
- nodes: REQUIRED id, x, y; OPTIONAL cluster, label; one column per trait
- edges: REQUIRED source, target; OPTIONAL weight (default 1)
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import polars as pl

from ndmap.config.traits import TRAITS
from ndmap.models import Dataset, Edge, Node

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """A required field has no matching column."""

    def __init__(self, table: str, field_name: str, aliases: Sequence[str], columns: Sequence[str]):
        self.table = table
        self.field_name = field_name
        self.aliases = tuple(aliases)
        self.columns = tuple(columns)
        super().__init__(
            f"{table} table: no column for required field '{field_name}' "
            f"(tried {', '.join(aliases)}; found {', '.join(columns) or 'no columns'})"
        )


@dataclass(frozen=True)
class SchemaField:
    name: str
    aliases: Tuple[str, ...]
    required: bool = False


NODE_SCHEMA: Tuple[SchemaField, ...] = (
    SchemaField('id', ('id', 'ID', 'user_id', 'UserID'), required=True),
    SchemaField('x', ('x_KPCA', 'kpca_x', 'KPCA_X', 'X', 'x', 'KPCA1'), required=True),
    SchemaField('y', ('y_KPCA', 'kpca_y', 'KPCA_Y', 'Y', 'y', 'KPCA2'), required=True),
    SchemaField('cluster', (
        'cluster', 'Cluster', 'clusters', 'Clusters', 'community', 'Community',
        'label', 'Label', 'comm_id', 'comm',
    )),
    SchemaField('label', ('name', 'display_name', 'username')),
)

EDGE_SCHEMA: Tuple[SchemaField, ...] = (
    SchemaField('source', ('source_id', 'source', 'from', 'i', 'u', 'SOURCE', 'Source', 'From'), required=True),
    SchemaField('target', ('target_id', 'target', 'to', 'j', 'v', 'TARGET', 'Target', 'To'), required=True),
    SchemaField('weight', ('weight', 'w', 'value', 'sim', 'similarity', 'Weight', 'W')),
)

NULL_LABELS = frozenset({'', 'nan', 'none', 'null'})


# ============================================================
# COLUMN RESOLUTION
# ============================================================

@dataclass(frozen=True)
class ColumnMapping:
    """field name -> alias columns present in the table, in alias order."""
    table: str
    columns: Dict[str, Tuple[str, ...]]

    def value(self, row: Dict[str, Any], field_name: str) -> Any:
        """First non-empty value among the field's columns, or None."""
        for col in self.columns.get(field_name, ()):
            v = row.get(col)
            if v is None:
                continue
            if isinstance(v, str) and not v.strip():
                continue
            return v
        return None


def resolve_columns(columns: Sequence[str], schema: Sequence[SchemaField], table: str) -> ColumnMapping:
    """
    Match table columns against the schema aliases.

    Raises:
        SchemaError: If a required field has no alias column in the table
    """
    present = set(columns)
    resolved = {}
    for f in schema:
        matches = tuple(a for a in f.aliases if a in present)
        if f.required and not matches:
            raise SchemaError(table, f.name, f.aliases, list(columns))
        resolved[f.name] = matches
    return ColumnMapping(table=table, columns=resolved)


# ============================================================
# VALUE COERCION
# ============================================================

def parse_float(value: Any) -> float:
    """Number from a CSV cell; NaN when empty or unparseable."""
    if value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return math.nan


def parse_weight(value: Any) -> float:
    """Edge weight; 1.0 when absent, unparseable, non-finite or negative."""
    w = parse_float(value)
    if not math.isfinite(w) or w < 0:
        return 1.0
    return w


def normalize_cluster(value: Any) -> Optional[str]:
    """
    Cluster label as a string, or None for "no cluster".

    Empty, 'nan', 'none', 'null' (any case) and float NaN are no cluster.
    Integral floats drop their '.0' so 3 and 3.0 name the same cluster.
    """
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    text = str(value).strip()
    if text.lower() in NULL_LABELS:
        return None
    try:
        number = float(text)
    except ValueError:
        return text
    if math.isfinite(number) and number.is_integer() and '.' in text:
        return str(int(number))
    return text


# ============================================================
# TABLE → RECORDS
# ============================================================

def map_nodes(df: pl.DataFrame, traits: Sequence[str] = TRAITS) -> Tuple[List[Node], List[str]]:
    """
    Typed nodes from the raw node table.

    Rows with an empty id are dropped; a repeated id keeps its first row.

    Returns:
        (nodes, diagnostics)
    """
    mapping = resolve_columns(df.columns, NODE_SCHEMA, 'nodes')
    diagnostics = []

    missing_traits = [t for t in traits if t not in df.columns]
    if missing_traits:
        msg = f"nodes table has no column for traits: {', '.join(missing_traits)}"
        logger.warning(msg)
        diagnostics.append(msg)

    nodes = []
    seen = set()
    n_empty = 0
    n_dupes = 0
    for row in df.iter_rows(named=True):
        raw_id = mapping.value(row, 'id')
        node_id = str(raw_id).strip() if raw_id is not None else ''
        if not node_id:
            n_empty += 1
            continue
        if node_id in seen:
            n_dupes += 1
            continue
        seen.add(node_id)

        label = mapping.value(row, 'label')
        nodes.append(Node(
            id=node_id,
            x=parse_float(mapping.value(row, 'x')),
            y=parse_float(mapping.value(row, 'y')),
            cluster=normalize_cluster(mapping.value(row, 'cluster')),
            traits={t: parse_float(row.get(t)) for t in traits if t in row},
            label=str(label).strip() if label is not None else None,
        ))

    if n_empty:
        logger.debug("Dropped %d node rows without an id", n_empty)
    if n_dupes:
        msg = f"nodes table has {n_dupes} duplicate ids (first row kept)"
        logger.warning(msg)
        diagnostics.append(msg)

    return nodes, diagnostics


def map_edges(df: pl.DataFrame) -> List[Edge]:
    """Typed edges from the raw edge table. Rows missing an endpoint id are dropped."""
    mapping = resolve_columns(df.columns, EDGE_SCHEMA, 'edges')

    edges = []
    n_dropped = 0
    for row in df.iter_rows(named=True):
        s = mapping.value(row, 'source')
        t = mapping.value(row, 'target')
        source_id = str(s).strip() if s is not None else ''
        target_id = str(t).strip() if t is not None else ''
        if not source_id or not target_id:
            n_dropped += 1
            continue
        edges.append(Edge(
            source_id=source_id,
            target_id=target_id,
            weight=parse_weight(mapping.value(row, 'weight')),
        ))

    if n_dropped:
        logger.debug("Dropped %d edge rows without both endpoints", n_dropped)
    return edges


def build_dataset(nodes_df: pl.DataFrame, edges_df: pl.DataFrame) -> Dataset:
    """Map both raw tables into a Dataset."""
    nodes, diagnostics = map_nodes(nodes_df)
    edges = map_edges(edges_df)
    return Dataset(nodes=tuple(nodes), edges=tuple(edges), diagnostics=tuple(diagnostics))
