from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Tuple

from src.common.models import ClassifiedFields, RECEIVED
from .mpesa import is_mpesa_message, parse_mpesa_message
from .equity import is_equity_message, parse_equity_message
from .coop import is_coop_message, parse_coop_message
from .generic import is_generic_bank_message, parse_generic_bank_message


@dataclass(frozen=True)
class ProviderRule:
    """
    One entry of the dispatch table.

    Attributes:
        name: Label used in logs
        matches: Cheap predicate on the message body
        extract: Returns fields, or None when the amount is missing
    """
    name: str
    matches: Callable[[str], bool]
    extract: Callable[[str], Optional[ClassifiedFields]]


def default_rules(generic_default_direction: str = RECEIVED) -> Tuple[ProviderRule, ...]:
    """Provider table in priority order. The generic bank rule is always last."""
    return (
        ProviderRule('M-Pesa', is_mpesa_message, parse_mpesa_message),
        ProviderRule('Equity Bank', is_equity_message, parse_equity_message),
        ProviderRule('Co-operative Bank', is_coop_message, parse_coop_message),
        ProviderRule(
            'Generic Bank',
            is_generic_bank_message,
            partial(parse_generic_bank_message, default_direction=generic_default_direction),
        ),
    )


PROVIDERS = default_rules()

__all__ = [
    'ProviderRule',
    'PROVIDERS',
    'default_rules',
]
