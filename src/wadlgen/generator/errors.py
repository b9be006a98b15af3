"""Errors recorded while compiling a WADL document to Python.

The generator records these instead of stopping, skips the node that
failed, and carries on so one run reports every problem it can find.
"""


class CompilationError(Exception):
    """A construct the generator cannot translate."""

    def __init__(
        self,
        message: str,
        method_id: str | None = None,
        param_name: str | None = None,
        type_name: str | None = None,
    ):
        self.message = message
        self.method_id = method_id
        self.param_name = param_name
        self.type_name = type_name
        super().__init__(str(self))

    def __str__(self) -> str:
        context = []
        if self.method_id:
            context.append(f"method {self.method_id!r}")
        if self.param_name:
            context.append(f"param {self.param_name!r}")
        if self.type_name:
            context.append(f"type {self.type_name!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class UnknownTypeError(CompilationError):
    """A scalar type name missing from the type table."""


class UnsupportedMediaTypeError(CompilationError):
    """A representation media type that has no Python record form."""


class UnsupportedRequestError(CompilationError):
    """A request body shape the generator cannot build."""


class UnsupportedResponseError(CompilationError):
    """Responses the generated code could not tell apart."""


class UndecodableHeaderError(CompilationError):
    """A response header whose type has no decoder."""


class UnsupportedParamStyleError(CompilationError):
    """A parameter style that makes no sense where it is used."""


class DuplicateEnumNameError(CompilationError):
    """A configured enum name that is already taken."""


class MissingIdentifierError(CompilationError):
    """A node that needs an id to be named has none."""


class CompilationFailed(Exception):
    """Raised by ``generate()`` when compilation recorded any errors."""

    def __init__(self, errors: list[CompilationError]):
        self.errors = errors
        lines = [f"{len(errors)} compilation error(s):"]
        lines.extend(f"  - {e}" for e in errors)
        super().__init__("\n".join(lines))
