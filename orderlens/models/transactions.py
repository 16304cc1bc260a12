"""
Transaction data models for the order analytics core.

Transactions are immutable once ingested: the effective timestamp and the
customer identity key are resolved a single time by the ingestion adapter
and every engine component reads them from here.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderlens.config import get_settings
from orderlens.utils.dates import to_local_naive


class LineItem(BaseModel):
    """A single product line on an order."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Product or menu item name")
    quantity: float = Field(default=0.0, description="Units ordered")
    price: float = Field(default=0.0, description="Unit price")

    @property
    def revenue(self) -> float:
        return self.price * self.quantity


class Transaction(BaseModel):
    """
    Normalized order/payment record consumed by every metric.

    Attributes:
        id: Source record identifier
        timestamp: Effective timestamp (naive local wall-clock); None when the
            source record carried no usable date, which excludes the record
            from all date-based aggregation
        amount: Order total used for revenue metrics
        payment_status: Source payment status (e.g. "FullyPaid")
        payment_method: Payment channel used for breakdowns
        delivery_method: Fulfilment channel ("Delivery" / "Pickup")
        discount: Discount applied to the order
        customer_key: Derived customer identity key used for grouping only
        customer_name: Display name for the customer, if known
        is_closed: Whether the order has been closed out
        items: Line items, when the source carries them
        attributes: Remaining domain fields, untouched
    """

    model_config = ConfigDict(frozen=True)

    id: Union[int, str] = Field(description="Source record identifier")
    timestamp: Optional[datetime] = Field(
        default=None, description="Effective timestamp resolved at ingestion"
    )
    amount: float = Field(default=0.0, description="Order total")
    payment_status: Optional[str] = Field(default=None, description="Payment status")
    payment_method: Optional[str] = Field(default=None, description="Payment method")
    delivery_method: Optional[str] = Field(default=None, description="Delivery method")
    discount: float = Field(default=0.0, description="Discount applied")
    customer_key: Optional[str] = Field(
        default=None, description="Derived customer identity key"
    )
    customer_name: Optional[str] = Field(default=None, description="Customer display name")
    is_closed: bool = Field(default=False, description="Order closed flag")
    items: tuple[LineItem, ...] = Field(default=(), description="Order line items")
    attributes: dict = Field(default_factory=dict, description="Other source fields")

    @field_validator("timestamp")
    @classmethod
    def strip_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Calendar math runs on naive local time; convert aware values."""
        if v is None or v.tzinfo is None:
            return v
        return to_local_naive(v, get_settings().timezone)


class CustomerIdentity(BaseModel):
    """
    Grouping key for a customer, derived from whatever identity fields a
    record carries. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    display_name: Optional[str] = None

    @classmethod
    def derive(
        cls, email: Optional[str] = None, name: Optional[str] = None
    ) -> Optional["CustomerIdentity"]:
        """Prefer the email (case-insensitive); fall back to the display name."""
        email = (email or "").strip()
        name = (name or "").strip()
        if email:
            return cls(key=email.lower(), display_name=name or email)
        if name:
            return cls(key=name, display_name=name)
        return None
