"""Market-data ingestion.

Modules
-------
alpha_vantage_client — AlphaVantageClient (sequential, rate-limited httpx
                       client with fixture mode) + response parsers + the
                       MarketDataError hierarchy.
"""
