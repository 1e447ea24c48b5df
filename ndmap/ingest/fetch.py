"""
Dataset Loader
==============

Fetch the node and edge tables (HTTP or local path), parse the CSV text and
map it into a Dataset.

load() never raises. Any fetch, parse or schema failure comes back as
LoadState.failed(reason) so the caller can show it.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

import httpx
import polars as pl
from polars.exceptions import PolarsError

from ndmap.config.defaults import CONFIG
from ndmap.models import LoadState
from .schema import SchemaError, build_dataset

logger = logging.getLogger(__name__)

Source = Union[str, Path]


def is_url(source: Source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def parse_csv(text: str) -> pl.DataFrame:
    """
    CSV text → DataFrame with every column as string.

    Typing happens later in the schema step. Fully empty rows are skipped.
    """
    df = pl.read_csv(
        io.BytesIO(text.encode('utf-8')),
        infer_schema_length=0,
        truncate_ragged_lines=True,
    )
    if df.width == 0:
        return df
    return df.filter(~pl.all_horizontal(pl.all().is_null()))


class DatasetLoader:
    """Load the two source tables into a Dataset."""

    def __init__(
        self,
        nodes_source: Optional[Source] = None,
        edges_source: Optional[Source] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = CONFIG['sources']['timeout'],
    ):
        self.nodes_source = nodes_source or CONFIG['sources']['nodes_url']
        self.edges_source = edges_source or CONFIG['sources']['edges_url']
        self.client = client
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict, **kwargs) -> "DatasetLoader":
        sources = config.get('sources', {})
        return cls(
            nodes_source=sources.get('nodes_url'),
            edges_source=sources.get('edges_url'),
            timeout=sources.get('timeout', CONFIG['sources']['timeout']),
            **kwargs,
        )

    def _read_local(self, source: Source) -> str:
        return Path(source).expanduser().read_text(encoding='utf-8')

    def _fetch(self, client: httpx.Client, url: str) -> str:
        logger.info("Fetching %s", url)
        response = client.get(url)
        response.raise_for_status()
        return response.text

    def fetch_text(self, source: Source, client: Optional[httpx.Client] = None) -> str:
        """Raw text of one source (URL or local file)."""
        if not is_url(source):
            return self._read_local(source)
        if client is not None:
            return self._fetch(client, str(source))
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as own:
            return self._fetch(own, str(source))

    def load(self) -> LoadState:
        """Fetch, parse and map both tables."""
        owns_client = self.client is None and (is_url(self.nodes_source) or is_url(self.edges_source))
        client = self.client
        if owns_client:
            client = httpx.Client(timeout=self.timeout, follow_redirects=True)

        try:
            nodes_text = self.fetch_text(self.nodes_source, client)
            edges_text = self.fetch_text(self.edges_source, client)
            dataset = build_dataset(parse_csv(nodes_text), parse_csv(edges_text))
        except httpx.HTTPStatusError as e:
            reason = f"HTTP {e.response.status_code} fetching {e.request.url}"
            logger.error("Load failed: %s", reason)
            return LoadState.failed(reason)
        except httpx.HTTPError as e:
            reason = f"Network error: {e}"
            logger.error("Load failed: %s", reason)
            return LoadState.failed(reason)
        except OSError as e:
            reason = f"Cannot read source: {e}"
            logger.error("Load failed: %s", reason)
            return LoadState.failed(reason)
        except (PolarsError, UnicodeError) as e:
            reason = f"Cannot parse CSV: {e}"
            logger.error("Load failed: %s", reason)
            return LoadState.failed(reason)
        except SchemaError as e:
            logger.error("Load failed: %s", e)
            return LoadState.failed(str(e))
        finally:
            if owns_client:
                client.close()

        logger.info(
            "Loaded %d nodes, %d edges", len(dataset.nodes), len(dataset.edges)
        )
        return LoadState.loaded(dataset)
