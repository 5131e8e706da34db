"""Search module for fanning searches out across native and proxied sources."""

from indexarr.core.search.errors import (
    CapabilityFetchError,
    InvalidSelector,
    SearchError,
    SearchFailure,
    SourceFetchError,
)
from indexarr.core.search.models import (
    AllNative,
    AllProxied,
    CanonicalResult,
    Selector,
    SingleNative,
    SingleProxied,
    SourceCatalogs,
    SourceDescriptor,
    SourceKind,
)
from indexarr.core.search.normalizer import SearchResultNormalizer
from indexarr.core.search.selector import (
    SelectorResolver,
    parse_selector,
    resolve_plan,
    selector_value,
)
from indexarr.core.search.executor import FanOutExecutor
from indexarr.core.search.categories import CategoryResolver
from indexarr.core.search.session import SearchController, SearchSession

__all__ = [
    "AllNative",
    "AllProxied",
    "CanonicalResult",
    "CapabilityFetchError",
    "CategoryResolver",
    "FanOutExecutor",
    "InvalidSelector",
    "SearchController",
    "SearchError",
    "SearchFailure",
    "SearchResultNormalizer",
    "SearchSession",
    "Selector",
    "SelectorResolver",
    "SingleNative",
    "SingleProxied",
    "SourceCatalogs",
    "SourceDescriptor",
    "SourceFetchError",
    "SourceKind",
    "parse_selector",
    "resolve_plan",
    "selector_value",
]
