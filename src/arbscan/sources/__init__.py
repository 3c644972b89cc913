"""Market-data sources (one per provider)."""

from arbscan.sources.base import MarketSource
from arbscan.sources.opinion import OpinionSource
from arbscan.sources.probable import ProbableSource

__all__ = ["MarketSource", "OpinionSource", "ProbableSource"]
