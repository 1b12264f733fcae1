# This package contains the data-fetch and cache coordination layer of the forecast dashboard.
# It exists so dashboard panels share one resilient transport and one per-session entity cache.
# The modules separate transport, endpoint parsing, caching, and series alignment to keep maintenance straightforward.

__all__ = ["data_access", "entity_store", "series_aligner", "transport"]
