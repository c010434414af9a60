"""Edinburgh rent valuation engine."""

__version__ = "0.1.0"
