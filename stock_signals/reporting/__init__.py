"""Terminal reporting.

Modules
-------
formatters — ASCII report cards, summary table, and news list for the CLI;
             shared value formatters for the dashboard.
"""
