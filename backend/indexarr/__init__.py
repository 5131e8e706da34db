"""Indexarr: search aggregation across native and proxied torrent indexers."""

__version__ = "0.1.0"
