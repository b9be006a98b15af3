"""Python types for WADL parameters.

A parameter's type is chosen in this order, first match wins:

1. the config's ``override_type_name`` hook;
2. its first link, giving the declared resource type's class (or a plain
   URL string when the target is empty or not declared here);
3. its option set, giving the enum the option deduplicator named;
4. its scalar ``type`` attribute, looked up in ``SCALAR_TYPES``.

The result is then wrapped in ``list[...]`` when the parameter repeats and
``Optional[...]`` when it may be absent.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from wadlgen.diagnostics import Diagnostics
from wadlgen.generator.errors import UnknownTypeError
from wadlgen.generator.naming import RUNTIME, type_identifier
from wadlgen.parser.base import (
    Application,
    EmptyResourceTypeRef,
    LinkType,
    Method,
    NoType,
    OptionsType,
    Param,
    RepresentationDef,
    Request,
    Response,
    ResourceTypeId,
    ResourceTypeLink,
    SimpleType,
)


class Codec(str, Enum):
    """How values of a type travel over the wire."""

    PLAIN = "plain"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    BINARY = "binary"
    ENUM = "enum"
    RESOURCE = "resource"
    URL = "url"
    ANY = "any"


class NamedType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    name: str
    codec: Codec = Codec.PLAIN


class SequenceType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["sequence"] = "sequence"
    item: "TypeDesc"


class NullableType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["nullable"] = "nullable"
    inner: "TypeDesc"


TypeDesc = Annotated[Union[NamedType, SequenceType, NullableType], Field(discriminator="kind")]

SequenceType.model_rebuild()
NullableType.model_rebuild()

SCALAR_TYPES = {
    "date": NamedType(name="datetime.date", codec=Codec.DATE),
    "dateTime": NamedType(name="datetime.datetime", codec=Codec.DATETIME),
    "time": NamedType(name="datetime.time", codec=Codec.TIME),
    "int": NamedType(name="int"),
    "integer": NamedType(name="int"),
    "string": NamedType(name="str"),
    "binary": NamedType(name="bytes", codec=Codec.BINARY),
    "boolean": NamedType(name="bool"),
}
URL_TYPE = NamedType(name="str", codec=Codec.URL)
ANY_TYPE = NamedType(name="Any", codec=Codec.ANY)


def render(t) -> str:
    """Spell a type descriptor as a Python annotation."""
    if isinstance(t, NamedType):
        return t.name
    if isinstance(t, SequenceType):
        return f"list[{render(t.item)}]"
    if isinstance(t, NullableType):
        return f"Optional[{render(t.inner)}]"
    raise TypeError(f"unknown type descriptor: {t!r}")


def readonly(t) -> str:
    """Spell the read-only view of a type, used for method arguments."""
    if isinstance(t, NamedType):
        return t.name
    if isinstance(t, SequenceType):
        return f"Sequence[{render(t.item)}]"
    if isinstance(t, NullableType):
        return f"Optional[{readonly(t.inner)}]"
    raise TypeError(f"unknown type descriptor: {t!r}")


def is_nullable(t) -> bool:
    return isinstance(t, NullableType)


def is_sequence(t) -> bool:
    if isinstance(t, NullableType):
        return is_sequence(t.inner)
    return isinstance(t, SequenceType)


def base_type(t) -> NamedType:
    """Strip sequence and nullable wrappers."""
    if isinstance(t, NamedType):
        return t
    if isinstance(t, SequenceType):
        return base_type(t.item)
    if isinstance(t, NullableType):
        return base_type(t.inner)
    raise TypeError(f"unknown type descriptor: {t!r}")


def format_expr(named: NamedType, value: str) -> str:
    """Expression turning ``value`` into the string sent in a URL, header or form."""
    if named.codec == Codec.URL or (named.codec == Codec.PLAIN and named.name == "str"):
        return value
    if named.codec == Codec.RESOURCE:
        return f"{value}.url"
    return f"{RUNTIME}.format_param({value})"


def json_expr(named: NamedType, value: str) -> str:
    """Expression turning ``value`` into a JSON-compatible value."""
    if named.codec in (Codec.URL, Codec.ANY):
        return value
    if named.codec == Codec.PLAIN and named.name in ("str", "int", "bool"):
        return value
    if named.codec == Codec.RESOURCE:
        return f"{value}.url"
    return f"{RUNTIME}.to_json_value({value})"


def header_decoder(named: NamedType) -> str | None:
    """Callable that parses a header string into ``named``; None for strings.

    Untyped headers are kept as the raw string.
    """
    if named.codec in (Codec.URL, Codec.ANY):
        return None
    if named.codec == Codec.PLAIN:
        return {"str": None, "int": "int", "bool": f"{RUNTIME}.parse_bool"}[named.name]
    if named.codec == Codec.DATE:
        return "datetime.date.fromisoformat"
    if named.codec == Codec.DATETIME:
        return "datetime.datetime.fromisoformat"
    if named.codec == Codec.TIME:
        return "datetime.time.fromisoformat"
    if named.codec in (Codec.ENUM, Codec.RESOURCE):
        return named.name
    raise KeyError(named.name)


def is_header_decodable(named: NamedType) -> bool:
    try:
        header_decoder(named)
    except KeyError:
        return False
    return True


# Where a parameter appears decides how link types are spelled and which
# override rules apply.


class RequestContainer(BaseModel):
    kind: Literal["request"] = "request"
    method: Method
    request: Request

    @property
    def method_id(self) -> str | None:
        return self.method.id or None


class ResponseContainer(BaseModel):
    kind: Literal["response"] = "response"
    method: Method
    response: Response

    @property
    def method_id(self) -> str | None:
        return self.method.id or None


class RepresentationContainer(BaseModel):
    kind: Literal["representation"] = "representation"
    representation: RepresentationDef

    @property
    def method_id(self) -> str | None:
        return None


ParamContainer = Union[RequestContainer, ResponseContainer, RepresentationContainer]


class ResolvedType(BaseModel):
    type: TypeDesc
    annotations: list[str] = Field(default_factory=list)


class TypeResolver:
    """Chooses the Python type of every parameter in one compilation."""

    def __init__(self, app: Application, config, option_names, diagnostics: Diagnostics):
        self.app = app
        self.config = config
        self.option_names = option_names
        self.diagnostics = diagnostics

    def resolve(self, container: ParamContainer, param: Param) -> ResolvedType:
        named, annotations = self._base_type(container, param)
        t = named
        if param.repeating:
            t = SequenceType(item=t)
        if self.config.nillable(param):
            t = NullableType(inner=t)
        return ResolvedType(type=t, annotations=annotations)

    def declared_resource_type(self, ref) -> NamedType | None:
        """The generated class for a resource type reference, if it is declared here."""
        if ref is None or isinstance(ref, EmptyResourceTypeRef):
            return None
        if isinstance(ref, (ResourceTypeId, ResourceTypeLink)):
            type_id = ref.id()
            if type_id is None or self.app.get_resource_type_by_id(type_id) is None:
                return None
            return NamedType(name=type_identifier(type_id), codec=Codec.RESOURCE)
        raise TypeError(f"unknown resource type reference: {ref!r}")

    def resource_type(self, ref, param: Param) -> NamedType:
        declared = self.declared_resource_type(ref)
        if declared is not None:
            return declared
        if ref is not None and not isinstance(ref, EmptyResourceTypeRef):
            self.diagnostics.warn(
                f"param {param.name!r} links to undeclared resource type {str(ref)!r}, using a plain URL"
            )
        return URL_TYPE

    def _raw_type_name(self, container: ParamContainer, param: Param) -> str:
        if param.links:
            if isinstance(container, RepresentationContainer):
                return URL_TYPE.name
            declared = self.declared_resource_type(param.links[0].resource_type)
            return declared.name if declared is not None else URL_TYPE.name
        if param.options is not None:
            return self.option_names.get(param.options) or ""
        return param.type_name or ""

    def _base_type(self, container: ParamContainer, param: Param) -> tuple[NamedType, list[str]]:
        raw = self._raw_type_name(container, param)
        override = self.config.override_type_name(container, raw, param.name)
        if override is not None:
            return NamedType(name=override), [f"was: {raw}"] if raw else []

        if param.links:
            link = param.links[0]
            if isinstance(container, RepresentationContainer):
                # Records store the URL; accessors expose the resource type.
                return URL_TYPE, []
            return self.resource_type(link.resource_type, param), []

        if param.options is not None:
            name = self.option_names.get(param.options)
            if name is None:
                raise UnknownTypeError(
                    "option set without a generated enum",
                    method_id=container.method_id,
                    param_name=param.name,
                )
            return NamedType(name=name, codec=Codec.ENUM), []

        if isinstance(param.type, SimpleType):
            scalar = SCALAR_TYPES.get(param.type.name.rsplit(":", 1)[-1])
            if scalar is None:
                raise UnknownTypeError(
                    "unknown scalar type",
                    method_id=container.method_id,
                    param_name=param.name,
                    type_name=param.type.name,
                )
            return scalar, [f"was: {param.type.name}"]
        if isinstance(param.type, NoType):
            self.diagnostics.warn(f"param {param.name!r} has no type, using Any")
            return ANY_TYPE, []
        if isinstance(param.type, (LinkType, OptionsType)):
            # Both variants come with links or options, handled above.
            raise UnknownTypeError(
                "inconsistent parameter type",
                method_id=container.method_id,
                param_name=param.name,
            )
        raise TypeError(f"unknown type reference: {param.type!r}")
