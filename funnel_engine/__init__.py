"""Marketing funnel diagnostics and financial projection toolkit."""

__version__ = "1.0.0"
