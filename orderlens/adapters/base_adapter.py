"""
Base adapter class for record ingestion.

Adapters turn raw source records into immutable Transaction models and a
data quality report. Field coercion never raises for a single bad record;
the record is kept with the offending field defaulted and the problem is
counted in the report.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import pandas as pd
import structlog

from orderlens.models.quality import DataQualityReport, QualityIssue
from orderlens.models.transactions import Transaction
from orderlens.utils.dates import to_local_naive

logger = structlog.get_logger()

TRUE_STRINGS = frozenset({"true", "1", "yes", "y"})
FALSE_STRINGS = frozenset({"false", "0", "no", "n"})


class BaseAdapter(ABC):
    """
    Abstract base class for transaction source adapters.

    Attributes:
        source_name: Identifier for the data source (e.g., "food_orders")
        timezone: IANA zone that aware timestamps are converted to before
            the tz info is dropped; None means host local time
    """

    def __init__(self, source_name: str, timezone: Optional[str] = None):
        self.source_name = source_name
        self.timezone = timezone
        self.logger = logger.bind(adapter=source_name)

    @abstractmethod
    def ingest(self, records: Any) -> tuple[list[Transaction], DataQualityReport]:
        """
        Transform source records into transactions with a quality report.

        Raises:
            IngestionError: If the collection itself is unusable
        """

    def _is_missing(self, value: Any) -> bool:
        """True for None, NaN, and blank strings."""
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    def _safe_str(self, value: Any, default: Optional[str] = None) -> Optional[str]:
        if self._is_missing(value):
            return default
        return str(value).strip()

    def _safe_float(self, value: Any, default: Optional[float] = None) -> Optional[float]:
        if self._is_missing(value) or isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _safe_bool(self, value: Any, default: bool = False) -> bool:
        """Coerce flags sent as bools, numbers, or strings like "false"."""
        if self._is_missing(value):
            return default
        if isinstance(value, str):
            text = value.strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
            return default
        try:
            return bool(value)
        except (TypeError, ValueError):
            return default

    def _safe_datetime(self, value: Any) -> Optional[datetime]:
        """
        Parse a timestamp into a naive local datetime.

        Aware values are converted to the adapter's timezone (or host local
        time) first. Unparseable values return None.
        """
        if self._is_missing(value):
            return None
        try:
            result = pd.to_datetime(value, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None
        if result is None or pd.isna(result):
            return None
        if hasattr(result, "to_pydatetime"):
            result = result.to_pydatetime()
        if not isinstance(result, datetime):
            return None
        return to_local_naive(result, self.timezone)

    def _quality_report(
        self,
        transactions: list[Transaction],
        quality_issues: list[QualityIssue],
    ) -> DataQualityReport:
        """Summarize how much of the batch is visible to date-based metrics."""
        total = len(transactions)
        dated = sum(1 for t in transactions if t.timestamp is not None)
        completeness = dated / total if total else 1.0

        if completeness >= 0.99:
            advisory = "All records carry a usable date. Date-based metrics are complete."
        elif completeness >= 0.90:
            advisory = "A few records lack a usable date and are excluded from date-based metrics."
        else:
            advisory = (
                "Many records lack a usable date. Date-based metrics undercount; "
                "review the source date fields."
            )

        report = DataQualityReport(
            source=self.source_name,
            total_records=total,
            dated_records=dated,
            undated_records=total - dated,
            completeness_score=completeness,
            quality_issues=[i for i in quality_issues if i.count > 0],
            impact_advisory=advisory,
        )
        self.logger.info(
            "transactions_ingested",
            total_records=total,
            dated_records=dated,
            completeness_score=report.completeness_score,
        )
        return report
