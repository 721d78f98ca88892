"""
estyped: typed client for the HTTP API of Elasticsearch compatible search servers
"""

from estyped.aggregate import AGGREGATIONS, AggregationResolver
from estyped.analysis import ANALYZERS, CHAR_FILTERS, NORMALIZERS, TOKEN_FILTERS, TOKENIZERS, AnalysisContext
from estyped.client import SearchClient, generate_url
from estyped.codec import Variant, VariantFamily, decode_named, decode_variant, encode_named, encode_variant
from estyped.config import Settings, get_settings
from estyped.index import Index, IndexMeta, IndexSettings, PrivateIndexMeta
from estyped.mapping import MAPPINGS, Mappings
from estyped.query import QUERIES
from estyped.search import SearchRequest, SearchResponse

FAMILIES = (CHAR_FILTERS, TOKEN_FILTERS, TOKENIZERS, NORMALIZERS, ANALYZERS, MAPPINGS, QUERIES, AGGREGATIONS)


def freeze_families() -> None:
    """Make all variant registries read-only. Call this after all extra kinds have been registered."""
    for family in FAMILIES:
        family.freeze()
