"""
Adapter for dashboard order/payment records.

Accepts the JSON-shaped records the dashboard loads (camelCase keys, with
optional nested workProfile / workTeller / items objects) and resolves each
record's effective timestamp exactly once: the first present field among
the configured candidates (default "date", then "createdAt") wins.
"""

from typing import Any, Iterable, Mapping, Optional

from orderlens.adapters.base_adapter import BaseAdapter
from orderlens.config import Settings, get_settings
from orderlens.models.errors import IngestionError
from orderlens.models.quality import DataQualityReport, QualityIssue
from orderlens.models.transactions import CustomerIdentity, LineItem, Transaction

AMOUNT_FIELDS = ("total", "amount")
CONSUMED_FIELDS = frozenset(
    {
        "id",
        "total",
        "amount",
        "paymentStatus",
        "paymentMethod",
        "workTellerType",
        "deliveryMethod",
        "discount",
        "isClosed",
        "items",
        "email",
        "customerEmail",
        "customerName",
        "workProfile",
    }
)


class RecordAdapter(BaseAdapter):
    """
    Turns raw record dicts into Transactions.

    Example:
        >>> txs, report = RecordAdapter().ingest([{"id": 1, "total": 100,
        ...     "createdAt": "2024-01-05T10:00:00"}])
        >>> txs[0].timestamp.day, report.undated_records
        (5, 0)
    """

    def __init__(self, source_name: str = "records", settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        super().__init__(source_name, timezone=self.settings.timezone)
        self.timestamp_fields = self.settings.timestamp_field_order

    def ingest(self, records: Iterable[Mapping[str, Any]]) -> tuple[list[Transaction], DataQualityReport]:
        if records is None or isinstance(records, (str, bytes, Mapping)):
            raise IngestionError("Records must be an iterable of mappings")

        missing_ts = QualityIssue(
            field="timestamp",
            issue_type="missing",
            count=0,
            description="No candidate date field present; excluded from date-based metrics",
        )
        invalid_ts = QualityIssue(
            field="timestamp",
            issue_type="invalid_format",
            count=0,
            description="Date field could not be parsed; excluded from date-based metrics",
        )
        invalid_amount = QualityIssue(
            field="amount",
            issue_type="invalid_format",
            count=0,
            description="Amount missing or non-numeric; treated as 0",
        )

        transactions = []
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise IngestionError(f"Record {index} is not a mapping")

            raw_ts = self._effective_timestamp_raw(record)
            timestamp = self._safe_datetime(raw_ts)
            if raw_ts is None:
                missing_ts.count += 1
            elif timestamp is None:
                invalid_ts.count += 1

            amount = None
            for field in AMOUNT_FIELDS:
                if not self._is_missing(record.get(field)):
                    amount = self._safe_float(record.get(field))
                    break
            if amount is None:
                invalid_amount.count += 1
                amount = 0.0

            identity = self._customer_identity(record)
            transactions.append(
                Transaction(
                    id=record.get("id", index),
                    timestamp=timestamp,
                    amount=amount,
                    payment_status=self._payment_status(record),
                    payment_method=self._safe_str(record.get("paymentMethod"))
                    or self._safe_str(record.get("workTellerType")),
                    delivery_method=self._safe_str(record.get("deliveryMethod")),
                    discount=self._safe_float(record.get("discount"), 0.0),
                    customer_key=identity.key if identity else None,
                    customer_name=identity.display_name if identity else None,
                    is_closed=self._safe_bool(record.get("isClosed")),
                    items=self._line_items(record.get("items")),
                    attributes={
                        k: v
                        for k, v in record.items()
                        if k not in CONSUMED_FIELDS and k not in self.timestamp_fields
                    },
                )
            )

        self.logger.debug(
            "records_normalized",
            total=len(transactions),
            missing_timestamps=missing_ts.count,
            invalid_timestamps=invalid_ts.count,
        )
        if missing_ts.count or invalid_ts.count:
            self.logger.warning(
                "undated_records_excluded",
                count=missing_ts.count + invalid_ts.count,
            )
        return transactions, self._quality_report(
            transactions, [missing_ts, invalid_ts, invalid_amount]
        )

    def _effective_timestamp_raw(self, record: Mapping[str, Any]) -> Any:
        """Value of the first present candidate date field, or None."""
        for field in self.timestamp_fields:
            value = record.get(field)
            if not self._is_missing(value):
                return value
        return None

    def _payment_status(self, record: Mapping[str, Any]) -> Optional[str]:
        status = self._safe_str(record.get("paymentStatus"))
        if status:
            return status
        teller = record.get("workTeller")
        if isinstance(teller, Mapping):
            return self._safe_str(teller.get("paymentStatus"))
        return None

    def _customer_identity(self, record: Mapping[str, Any]) -> Optional[CustomerIdentity]:
        email = self._safe_str(record.get("email")) or self._safe_str(record.get("customerEmail"))
        name = self._safe_str(record.get("customerName"))
        profile = record.get("workProfile")
        if isinstance(profile, Mapping):
            email = email or self._safe_str(profile.get("email"))
            name = name or self._safe_str(profile.get("name"))
        return CustomerIdentity.derive(email=email, name=name)

    def _line_items(self, raw: Any) -> tuple[LineItem, ...]:
        if not isinstance(raw, list):
            return ()
        items = []
        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            menu_item = entry.get("menuItem")
            name = self._safe_str(entry.get("name"))
            if not name and isinstance(menu_item, Mapping):
                name = self._safe_str(menu_item.get("name"))
            if not name:
                continue
            items.append(
                LineItem(
                    name=name,
                    quantity=self._safe_float(entry.get("quantity"), 0.0),
                    price=self._safe_float(entry.get("price"), 0.0),
                )
            )
        return tuple(items)
