"""Stock batch ledger with FIFO consumption and weighted-average valuation."""

__version__ = "1.0.0"
