"""Technical indicator package.

Modules
-------
technical — calculate_sma / calculate_ema / calculate_rsi / calculate_macd and
            the MacdResult dataclass.  Pure functions, no I/O.
snapshot  — build_snapshot() + required_history(): latest values for the
            classifier.
"""
