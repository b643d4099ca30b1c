"""Per-language quoting rules used when converting to and from multi-line form."""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from .models import QuoteRuleSet, StringSpan

_DOLLAR_BRACE_RE = re.compile(r"\$\{[^}]*\}")
_BRACE_RE = re.compile(r"\{[^}]*\}")
_HASH_BRACE_RE = re.compile(r"#\{[^}]*\}")
_PHP_VARIABLE_RE = re.compile(r"\$[a-zA-Z_]")
_KOTLIN_DECLARATION_RE = re.compile(r"\b(val|var)\b")


def _template_literal_interpolation(content: str, quote: str) -> bool:
    return quote == "`" and bool(_DOLLAR_BRACE_RE.search(content))


def _brace_interpolation(content: str, quote: str) -> bool:
    return bool(_BRACE_RE.search(content))


def _ruby_interpolation(content: str, quote: str) -> bool:
    return bool(_HASH_BRACE_RE.search(content))


def _dollar_brace_interpolation(content: str, quote: str) -> bool:
    return bool(_DOLLAR_BRACE_RE.search(content))


def _php_variable(content: str, quote: str) -> bool:
    return bool(_PHP_VARIABLE_RE.search(content))


_ECMASCRIPT_RULES = QuoteRuleSet(
    multiline_quotes=("`",),
    preferred_multiline_quote="`",
    has_special_features=_template_literal_interpolation,
    allows_multiline_in_regular_quotes=False,
)

DEFAULT_RULES = QuoteRuleSet()

QUOTE_RULES: Mapping[str, QuoteRuleSet] = {
    "javascript": _ECMASCRIPT_RULES,
    "typescript": _ECMASCRIPT_RULES,
    "javascriptreact": _ECMASCRIPT_RULES,
    "typescriptreact": _ECMASCRIPT_RULES,
    "python": QuoteRuleSet(
        multiline_quotes=('"""', "'''"),
        preferred_multiline_quote='"""',
        has_special_features=_brace_interpolation,
        allows_multiline_in_regular_quotes=False,
    ),
    "csharp": QuoteRuleSet(
        multiline_quotes=('"""',),
        preferred_multiline_quote='"""',
        has_special_features=_brace_interpolation,
        allows_multiline_in_regular_quotes=False,
    ),
    "go": QuoteRuleSet(
        multiline_quotes=("`",),
        preferred_multiline_quote="`",
        allows_multiline_in_regular_quotes=False,
    ),
    "ruby": QuoteRuleSet(
        multiline_quotes=('"', "'"),
        preferred_multiline_quote='"',
        has_special_features=_ruby_interpolation,
        allows_multiline_in_regular_quotes=True,
    ),
    "java": QuoteRuleSet(
        multiline_quotes=('"""',),
        preferred_multiline_quote='"""',
        allows_multiline_in_regular_quotes=False,
    ),
    "kotlin": QuoteRuleSet(
        multiline_quotes=('"""',),
        preferred_multiline_quote='"""',
        has_special_features=_dollar_brace_interpolation,
        allows_multiline_in_regular_quotes=False,
    ),
    "php": QuoteRuleSet(
        multiline_quotes=('"',),
        preferred_multiline_quote='"',
        has_special_features=_php_variable,
        allows_multiline_in_regular_quotes=True,
    ),
}


def get_quote_rules(language_id: str | None) -> QuoteRuleSet:
    return QUOTE_RULES.get((language_id or "").lower(), DEFAULT_RULES)


def resolve_language_id(language_id: str, lines: Sequence[str], span: StringSpan | None = None) -> str:
    """Return the language whose rules apply to ``span``.

    Untyped ``plaintext`` buffers that declare the literal with ``val``/``var``
    are treated as Kotlin.
    """

    if language_id != "plaintext" or span is None:
        return language_id
    if span.start.line >= len(lines):
        return language_id
    before = lines[span.start.line][: span.start.character]
    if _KOTLIN_DECLARATION_RE.search(before):
        return "kotlin"
    return language_id


def get_multiline_quote(language_id: str, quote: str, is_attribute_value: bool) -> str:
    """Return the token to use for the multi-line form of a ``quote`` literal."""

    if is_attribute_value:
        return quote
    rules = get_quote_rules(language_id)
    if not rules.converts_quotes:
        return quote
    return rules.preferred_multiline_quote


def should_restore_original_quote(
    language_id: str,
    content: str,
    current_quote: str,
    original_quote: str | None,
) -> bool:
    if not original_quote or original_quote == current_quote:
        return False
    rules = get_quote_rules(language_id)
    if rules.has_special_features(content, current_quote):
        return False
    return True


__all__ = [
    "QUOTE_RULES",
    "DEFAULT_RULES",
    "get_quote_rules",
    "resolve_language_id",
    "get_multiline_quote",
    "should_restore_original_quote",
]
