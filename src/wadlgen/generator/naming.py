"""Identifier normalization for generated Python code.

``to_type_name`` and ``to_field_name`` are each idempotent, but they are
not inverses: ``to_type_name(to_field_name("XMLParser"))`` is
``"Xmlparser"``. Acronym boundaries are lost on the way down and that is
accepted.
"""

import json
import keyword
import re

# Name the generated module binds wadlgen.runtime to; a leading underscore
# keeps it clear of parameter names.
RUNTIME = "_runtime"

# Lowercase module-level names generated code refers to. Fields and
# arguments taking one of these would shadow it.
MODULE_NAMES = frozenset({
    "datetime", "enum", "warnings", "quote", "urlencode",
    "bool", "bytes", "dict", "float", "int", "list", "str", "tuple",
})

_SEPARATORS = "-_"
_INVALID_CHARS = re.compile(r"[^0-9A-Za-z_]")


def to_type_name(name: str) -> str:
    """``get-some-URL`` -> ``GetSomeURL``; a leading separator is kept."""
    stripped = name.lstrip(_SEPARATORS)
    prefix = name[: len(name) - len(stripped)]
    segments = re.split(r"[-_]", stripped)
    return prefix + "".join(s[:1].upper() + s[1:] for s in segments)


def to_field_name(name: str) -> str:
    """``GetSomeURL`` -> ``get_some_url``; uppercase runs are not split."""
    result: list[str] = []
    previous_upper = False
    for c in name.replace("-", "_"):
        if c.isupper():
            if result and not previous_upper and result[-1] != "_":
                result.append("_")
            result.append(c.lower())
            previous_upper = True
        else:
            result.append(c)
            previous_upper = False
    return "".join(result)


def escape_reserved(name: str) -> str:
    """Append an underscore to names that are Python keywords."""
    if keyword.iskeyword(name):
        return name + "_"
    return name


def sanitize(name: str) -> str:
    """Replace characters that cannot appear in an identifier."""
    name = _INVALID_CHARS.sub("_", name)
    if not name:
        return "_"
    if name[0].isdigit():
        return "_" + name
    return name


def type_identifier(name: str) -> str:
    return escape_reserved(sanitize(to_type_name(name)))


def field_identifier(name: str) -> str:
    return escape_reserved(sanitize(to_field_name(name)))


def enum_member_name(value: str) -> str:
    """``application/json`` -> ``APPLICATION_JSON``."""
    name = re.sub(r"_+", "_", _INVALID_CHARS.sub("_", to_field_name(value.replace(" ", "-"))))
    name = name.strip("_").upper()
    if not name:
        return "EMPTY"
    if name[0].isdigit():
        return "_" + name
    return name


def string_literal(value: str) -> str:
    """Render ``value`` as a double-quoted Python string literal."""
    return json.dumps(value)
