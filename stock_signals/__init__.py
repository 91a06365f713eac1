"""Stock Signals — daily technical-indicator signals for US stocks."""

__version__ = "0.1.0"
