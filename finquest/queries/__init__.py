"""Read-only queries over the stores."""

from finquest.queries.summary import CategoryTotal, MonthlyTotals, PeriodSummary, SummaryBuilder

__all__ = ["CategoryTotal", "MonthlyTotals", "PeriodSummary", "SummaryBuilder"]
