"""arbscan - prediction market aggregation for cross-venue arbitrage scanning."""

__version__ = "0.1.0"
