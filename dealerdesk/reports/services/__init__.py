"""Report services package."""
from .report_service import (
    ReportService, summarize_arbitration, summarize_missing_titles, summarize_periods,
    summarize_profit, summarize_sales,
)

__all__ = [
    'ReportService', 'summarize_arbitration', 'summarize_missing_titles', 'summarize_periods',
    'summarize_profit', 'summarize_sales',
]
