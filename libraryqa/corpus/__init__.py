"""Book catalog loading."""

from libraryqa.corpus.catalog import Catalog
from libraryqa.corpus.loader import load_catalog, parse_sections

__all__ = ["Catalog", "load_catalog", "parse_sections"]
