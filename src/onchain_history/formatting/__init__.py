"""Presentation helpers: display formatting, filtering and export."""

from onchain_history.formatting.export import (
    Direction,
    ExportFormat,
    export_transactions,
    filter_transactions,
)
from onchain_history.formatting.formatter import (
    FormattedTransaction,
    StatusDisplay,
    explorer_url,
    format_amount,
    format_relative_time,
    format_timestamp,
    format_transaction,
    format_transactions,
    group_transactions_by_date,
    shorten,
)

__all__ = [
    "Direction",
    "ExportFormat",
    "FormattedTransaction",
    "StatusDisplay",
    "explorer_url",
    "export_transactions",
    "filter_transactions",
    "format_amount",
    "format_relative_time",
    "format_timestamp",
    "format_transaction",
    "format_transactions",
    "group_transactions_by_date",
    "shorten",
]
