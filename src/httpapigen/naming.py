"""Identifier and file-name conventions for generated artifacts.

All conversions are case-boundary aware (``"createUser"`` and
``"create-user"`` normalise the same way) and idempotent: applying a function
to its own output returns that output unchanged.
"""

from __future__ import annotations

import re

_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_DELIMITERS = re.compile(r"[^A-Za-z0-9]+")


def _words(text: str) -> list[str]:
    spaced = _CASE_BOUNDARY.sub(r"\1 \2", text)
    return [word for word in _DELIMITERS.split(spaced) if word]


def to_pascal_case(text: str) -> str:
    """Convert *text* to PascalCase.

    Existing capitals inside a word are preserved, so acronyms survive
    (``"HTTPServer"`` stays ``"HTTPServer"``).

    Examples::

        >>> to_pascal_case("create-user")
        'CreateUser'
        >>> to_pascal_case("createUser")
        'CreateUser'
        >>> to_pascal_case("CreateUser")
        'CreateUser'
    """
    return "".join(word[0].upper() + word[1:] for word in _words(text))


def to_camel_case(text: str) -> str:
    """Convert *text* to camelCase (PascalCase with a lowercase first letter)."""
    pascal = to_pascal_case(text)
    return pascal[:1].lower() + pascal[1:]


def to_kebab_case(text: str) -> str:
    """Convert *text* to kebab-case for file and module names.

    Examples::

        >>> to_kebab_case("CreateUser")
        'create-user'
        >>> to_kebab_case("pet_store API")
        'pet-store-api'
    """
    return "-".join(word.lower() for word in _words(text))
