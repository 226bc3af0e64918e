"""Domain layer for tallybook application."""

__all__ = ["LedgerService", "ReportService"]


# Services import the database layer, which imports entities from here;
# resolve them lazily to keep that cycle open.
def __getattr__(name):
    if name == "LedgerService":
        from tallybook.domain.ledger import LedgerService
        return LedgerService
    if name == "ReportService":
        from tallybook.domain.reports import ReportService
        return ReportService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
