"""
Dues and payment enumerations.
"""

import enum


class DueCategory(str, enum.Enum):
    """Due item category enumeration."""
    MESS = "mess"
    RENT = "rent"
    AMENITIES = "amenities"
    OTHER = "other"

    @property
    def default_label(self) -> str:
        return DEFAULT_ITEM_LABELS[self]


DEFAULT_ITEM_LABELS = {
    DueCategory.MESS: "Mess Charges",
    DueCategory.RENT: "Room Rent",
    DueCategory.AMENITIES: "Amenities Fee",
    DueCategory.OTHER: "Other Charges",
}


class DueItemStatus(str, enum.Enum):
    """Due item status enumeration."""
    PENDING = "pending"  # Not settled (may be claimed by an authorized transaction)
    PAID = "paid"  # Settled by a committed transaction


class PeriodStatus(str, enum.Enum):
    """
    Derived due period status.

    Never stored; see derive_period_status.
    """
    PENDING = "pending"  # No item paid
    PARTIAL = "partial"  # Some items paid
    PAID = "paid"  # Every item paid


class PaymentMethod(str, enum.Enum):
    """Payment method enumeration."""
    UPI = "UPI"
    CARD = "Card"
    NET_BANKING = "NetBanking"

    @classmethod
    def parse(cls, value) -> "PaymentMethod":
        """
        Resolve a method from its value, tolerating case and spacing.

        "Net Banking", "netbanking" and "NET_BANKING" all resolve to NET_BANKING.

        Raises:
            ValueError: if the value names no known method
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{value!r} is not a valid {cls.__name__}")
        key = value.replace(" ", "").replace("_", "").lower()
        for method in cls:
            if method.value.lower() == key:
                return method
        raise ValueError(f"{value!r} is not a valid {cls.__name__}")


class TransactionStatus(str, enum.Enum):
    """Payment transaction status enumeration."""
    AUTHORIZED = "authorized"  # Holds claims on its items, awaiting commit
    COMMITTED = "committed"  # Items paid, row immutable
    FAILED = "failed"  # Abandoned or rejected, claims released
