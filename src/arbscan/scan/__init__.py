"""Cross-source scan orchestration."""

from arbscan.scan.aggregator import ScanAggregator, SourceResult, settle_all

__all__ = ["ScanAggregator", "SourceResult", "settle_all"]
