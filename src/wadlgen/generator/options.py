"""Enum classes for parameter option sets.

Parameters with identical option sets share one enum. Names come from the
first parameter seen with each set, in document order, with a numeric
suffix when that name is already taken by a different set.
"""

from typing import Iterable

from wadlgen.generator.errors import CompilationError, DuplicateEnumNameError
from wadlgen.generator.naming import enum_member_name, string_literal, type_identifier
from wadlgen.parser.base import Application, Options, Param


class OptionNames:
    """Maps each distinct option set to the name of its generated enum."""

    def __init__(self, reserved: Iterable[str] = ()):
        self._names: dict[Options, str] = {}
        self._reserved = set(reserved)

    def get(self, options: Options) -> str | None:
        return self._names.get(options)

    def is_taken(self, name: str) -> bool:
        return name in self._reserved or name in self._names.values()

    def items(self) -> list[tuple[str, Options]]:
        """``(name, options)`` pairs in the order names were assigned."""
        return [(name, options) for options, name in self._names.items()]

    def __len__(self) -> int:
        return len(self._names)

    def assign(self, param: Param, config) -> str:
        existing = self._names.get(param.options)
        if existing is not None:
            return existing
        custom = config.options_enum_name(param, self.is_taken)
        if custom is None:
            return self.assign_default(param)
        if self.is_taken(custom):
            raise DuplicateEnumNameError(
                "configured enum name is already taken", param_name=param.name, type_name=custom
            )
        self._names[param.options] = custom
        return custom

    def assign_default(self, param: Param) -> str:
        base = type_identifier(param.name)
        name = base
        n = 2
        while self.is_taken(name):
            name = f"{base}{n}"
            n += 1
        self._names[param.options] = name
        return name


def collect_option_names(
    app: Application, config, reserved: Iterable[str], errors: list[CompilationError]
) -> OptionNames:
    """Name every option set in ``app`` in a single pass."""
    names = OptionNames(reserved)
    for param in app.iter_all_params():
        if param.options is None:
            continue
        try:
            names.assign(param, config)
        except DuplicateEnumNameError as e:
            errors.append(e)
            names.assign_default(param)
    return names


def generate_enum(name: str, options: Options) -> list[str]:
    lines = [f"class {name}(str, enum.Enum):\n"]
    members: set[str] = set()
    for value, media_type in options.items():
        member = enum_member_name(value)
        while member in members:
            member += "_"
        members.add(member)
        comment = f"  # {media_type}" if media_type else ""
        lines.append(f"    {member} = {string_literal(value)}{comment}\n")
    lines.append("\n")
    lines.append("    def __str__(self) -> str:\n")
    lines.append("        return self.value\n")
    return lines
