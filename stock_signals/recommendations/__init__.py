"""
Recommendation engine: converts the latest indicator values into a
buy/sell/hold label with a human-readable rationale.

Modules
-------
classifier : classify() + classify_snapshot() + detect_crossover()
             + rsi_status() / macd_status() — pure functions, no I/O.
"""
