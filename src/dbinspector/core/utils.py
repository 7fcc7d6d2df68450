"""Small helpers for SQL text, identifiers, durations and catalog values."""

import random
import re
import string
from typing import Any, List, Union

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_LEADING_COMMENTS = re.compile(r"(?:\s+|--[^\n]*|/\*.*?\*/)*", re.DOTALL)
_FIRST_WORD = re.compile(r"[A-Za-z]+")


class ValidationUtils:

    @staticmethod
    def validate_identifier(identifier: str, *, allow_empty: bool = False) -> bool:
        """True for a plain ``[A-Za-z_][A-Za-z0-9_]*`` name.

        Example:
            >>> ValidationUtils.validate_identifier("request_id")
            True
            >>> ValidationUtils.validate_identifier("9lives")
            False
        """
        if not identifier:
            return allow_empty
        return _IDENTIFIER.fullmatch(identifier) is not None


class StringUtils:

    ID_CHARSET = string.ascii_lowercase + string.digits

    @staticmethod
    def truncate_string(text: str, max_length: int, *, suffix: str = "...") -> str:
        """Shorten ``text`` to ``max_length`` characters, ending in ``suffix``.

        Used to keep SQL text in error contexts readable.

        Example:
            >>> StringUtils.truncate_string("SELECT * FROM orders", 10)
            'SELECT ...'
        """
        if len(text) <= max_length:
            return text
        keep = max_length - len(suffix)
        if keep <= 0:
            return suffix[:max_length]
        return text[:keep] + suffix

    @classmethod
    def generate_random_string(cls, length: int, *, charset: str = "") -> str:
        return "".join(random.choices(charset or cls.ID_CHARSET, k=length))

    @staticmethod
    def leading_keyword(sql: str) -> str:
        """Upper-cased first word of a statement after any leading comments.

        Returns an empty string when the statement does not start with a word.

        Example:
            >>> StringUtils.leading_keyword("/* hint */ delete from t")
            'DELETE'
        """
        body = sql or ""
        start = _LEADING_COMMENTS.match(body).end()
        word = _FIRST_WORD.match(body, start)
        return word.group(0).upper() if word else ""


class FormatUtils:

    @staticmethod
    def format_duration(seconds: Union[int, float]) -> str:
        """Render seconds as ``1h 1m 1s``, ``1.50s``, ``12.00ms`` or ``0.50μs``."""
        if seconds == 0:
            return "0s"
        sign = "-" if seconds < 0 else ""
        remaining = abs(seconds)

        if remaining < 0.001:
            return f"{sign}{remaining * 1e6:.2f}μs"
        if remaining < 1:
            return f"{sign}{remaining * 1e3:.2f}ms"

        parts: List[str] = []
        for unit, size in (("h", 3600), ("m", 60)):
            count, remaining = divmod(remaining, size)
            if count:
                parts.append(f"{int(count)}{unit}")
        if remaining or not parts:
            parts.append(f"{int(remaining)}s" if remaining == int(remaining) else f"{remaining:.2f}s")
        return sign + " ".join(parts)


def safe_cast(value: Any, target_type: type, *, default: Any = None) -> Any:
    """Convert a catalog value, returning ``default`` instead of raising.

    Catalog columns arrive as ints, strings, Decimals or NULL depending on
    the driver.

    Example:
        >>> safe_cast(" 42 ", int)
        42
        >>> safe_cast("n/a", int, default=0)
        0
    """
    if value is None:
        return default
    if isinstance(value, str) and target_type is int:
        value = value.strip()
    try:
        return target_type(value)
    except (TypeError, ValueError, ArithmeticError):
        return default
