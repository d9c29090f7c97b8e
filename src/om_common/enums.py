"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class LedgerEntryType(str, Enum):
    PURCHASE_PAYMENT = "PURCHASE_PAYMENT"   # buyer, negative
    SALE_REVENUE = "SALE_REVENUE"           # previous owner, positive
    OWNERSHIP_BONUS = "OWNERSHIP_BONUS"     # purchased account, positive


class LedgerReferenceType(str, Enum):
    PURCHASE = "PURCHASE"


class NotificationType(str, Enum):
    YOU_WERE_BOUGHT = "YOU_WERE_BOUGHT"
    YOUR_PERSON_SOLD = "YOUR_PERSON_SOLD"


class PurchaseRejection(str, Enum):
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    CANNOT_BUY_SELF = "CANNOT_BUY_SELF"
    ALREADY_OWN = "ALREADY_OWN"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    STALE_DATA = "STALE_DATA"
    PRICE_CHANGED = "PRICE_CHANGED"
    OWNER_CHANGED = "OWNER_CHANGED"
