"""
Shared SMS patterns: the relevance gate signatures and amount extraction.
"""
import re
from typing import Iterable, Optional, Pattern

# Any of these marks a message as worth handing to the provider table.
RELEVANCE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"M-PESA",
        r"MPESA",
        r"Confirmed\.\s*Ksh",
        r"Equity Bank",
        r"Acc\. No:",
        r"Amt:",
        r"Co-op Bank",
        r"CO-OP BANK",
        r"credited with",
        r"KCB",
        r"received.*Ksh",
        r"paid.*Ksh",
        r"DTB",
        r"Diamond Trust Bank",
        r"Family Bank",
        r"Standard Chartered",
        r"NCBA",
        r"Absa",
        r"Stanbic",
    )
]

KSH_AMOUNT = re.compile(r"Ksh\s*([\d,]+\.?\d*)")
KES_AMOUNT = re.compile(r"KES\s*([\d,]+\.?\d*)")


def is_financial_message(body) -> bool:
    """Relevance gate. Non-string or blank bodies are never financial."""
    if not isinstance(body, str) or not body.strip():
        return False
    return any(p.search(body) for p in RELEVANCE_PATTERNS)


def parse_amount(amount_str: str) -> float:
    """
    Parses a Kenyan shilling figure to a float magnitude.
    Examples:
        "1,500.00" -> 1500.0
        "450" -> 450.0
    """
    return abs(float(amount_str.replace(',', '')))


def find_amount(body: str, patterns: Iterable[Pattern] = (KSH_AMOUNT,)) -> Optional[float]:
    """
    First currency-prefixed amount in body, trying patterns in order.
    A zero or unreadable figure (e.g. "Ksh,") counts as no amount.
    """
    for pattern in patterns:
        m = pattern.search(body)
        if not m:
            continue
        try:
            amount = parse_amount(m.group(1))
        except ValueError:
            continue
        if amount > 0:
            return amount
    return None
