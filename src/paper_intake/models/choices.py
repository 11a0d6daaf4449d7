"""Enumerated values accepted on a registration form"""

from enum import Enum


class FormType(str, Enum):
    """Paper form being registered. OTHER requires a free-text description."""

    AD01 = "AD01"
    B07 = "B07"
    K432 = "K432"
    D243 = "D243"
    OTHER = "OTHER"


class PenColour(str, Enum):
    """Pen colour the submitter did not use on the form"""

    BLUE = "BLUE"
    BLACK = "BLACK"
    RED = "RED"
    GREEN = "GREEN"


class GuidanceRead(str, Enum):
    YES = "YES"
    LOOKED_AT_NOW = "LOOKED_AT_NOW"
    NO = "NO"


class ReceiptPreference(str, Enum):
    """How the submitter wants to receive their reference number"""

    EMAIL = "email"
    PHONE = "phone"
    NONE = "none"


def values_of(enum_cls) -> list[str]:
    """Return the wire values of an enumeration in declaration order"""
    return [member.value for member in enum_cls]
