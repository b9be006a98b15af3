"""Errors raised while reading a WADL document.

Parsing stops at the first error; no partial document is returned.
"""


class ParseError(Exception):
    """Base class for every failure to read a WADL document."""


class IoError(ParseError):
    """The document could not be read from disk."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"IO error: {path}: {reason}")
        self.path = path
        self.reason = reason


class XmlError(ParseError):
    """The document is not well-formed XML."""

    def __init__(self, reason: str):
        super().__init__(f"XML error: {reason}")
        self.reason = reason


class UrlError(ParseError):
    """An attribute that must hold a URL or IRI does not parse as one."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"URL error: {value!r}: {reason}")
        self.value = value
        self.reason = reason


class MediaTypeError(ParseError):
    """An attribute that must hold a media type does not parse as one."""

    def __init__(self, value: str):
        super().__init__(f"MIME error: invalid media type {value!r}")
        self.value = value


class MissingAttributeError(ParseError):
    """A required attribute is absent."""

    def __init__(self, element: str, attribute: str):
        super().__init__(f"<{element}> is missing required attribute {attribute!r}")
        self.element = element
        self.attribute = attribute


class InvalidAttributeError(ParseError):
    """An attribute holds a value outside its permitted set."""

    def __init__(self, element: str, attribute: str, value: str):
        super().__init__(f"<{element}> has invalid {attribute}={value!r}")
        self.element = element
        self.attribute = attribute
        self.value = value
