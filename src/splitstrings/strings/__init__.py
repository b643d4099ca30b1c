"""String literal engine: locating, splitting, merging, and tracking literals."""

from .cursor import WordPosition, map_from_word, map_to_word
from .locator import QUOTE_TOKENS, find_quote_position_in_line, locate
from .models import QuoteRuleSet, StringSpan, TrackedEntry, fingerprint
from .tracking import TrackedStringStore
from .transform import SplitResult, merge, split

__all__ = [
    "QUOTE_TOKENS",
    "QuoteRuleSet",
    "SplitResult",
    "StringSpan",
    "TrackedEntry",
    "TrackedStringStore",
    "WordPosition",
    "find_quote_position_in_line",
    "fingerprint",
    "locate",
    "map_from_word",
    "map_to_word",
    "merge",
    "split",
]
