"""Data models for a parsed WADL document.

The WADL parser converts its input into these models; the generator walks
them read-only. Cross references between resource types and
representations stay symbolic (ids and hrefs) and are looked up on the
owning Application when needed.
"""

from enum import Enum
from typing import Annotated, Iterable, Iterator, Literal, Union
from urllib.parse import urljoin, urlsplit, urlunsplit

from pydantic import BaseModel, Field

WADL_NS = "http://wadl.dev.java.net/2009/02"
XHTML_NS = "http://www.w3.org/1999/xhtml"
WADL_MIME_TYPE = "application/vnd.sun.wadl+xml"
JSON_MIME_TYPE = "application/json"
FORM_MIME_TYPE = "application/x-www-form-urlencoded"
MULTIPART_MIME_TYPE = "multipart/form-data"


def media_type_essence(media_type: str | None) -> str | None:
    """Return the lowercased ``type/subtype`` part of a media type."""
    if media_type is None:
        return None
    return media_type.split(";", 1)[0].strip().lower()


def _with_fragment(url: str, fragment: str) -> str:
    return urlunsplit(urlsplit(url)._replace(fragment=fragment))


def _fragment(url: str) -> str | None:
    return urlsplit(url).fragment or None


class ParamStyle(str, Enum):
    PLAIN = "plain"
    MATRIX = "matrix"
    QUERY = "query"
    HEADER = "header"
    TEMPLATE = "template"


class Doc(BaseModel):
    """A documentation block; ``content`` keeps any inline markup verbatim."""

    title: str | None = None
    lang: str | None = None
    content: str = ""
    xmlns: str | None = None


# Resource type references


class ResourceTypeId(BaseModel):
    kind: Literal["id"] = "id"
    type_id: str

    def id(self) -> str | None:
        return self.type_id

    def __str__(self) -> str:
        return f"#{self.type_id}"


class ResourceTypeLink(BaseModel):
    kind: Literal["link"] = "link"
    href: str

    def id(self) -> str | None:
        return _fragment(self.href)

    def __str__(self) -> str:
        return self.href


class EmptyResourceTypeRef(BaseModel):
    kind: Literal["empty"] = "empty"

    def id(self) -> str | None:
        return None

    def __str__(self) -> str:
        return ""


ResourceTypeRef = Annotated[
    Union[ResourceTypeId, ResourceTypeLink, EmptyResourceTypeRef],
    Field(discriminator="kind"),
]


# Parameter types


class SimpleType(BaseModel):
    """A scalar type spelled in the ``type`` attribute, e.g. ``xsd:string``."""

    kind: Literal["simple"] = "simple"
    name: str


class LinkType(BaseModel):
    """The parameter's value is the URL of a resource of the referenced type."""

    kind: Literal["link"] = "link"
    resource_type: ResourceTypeRef


class Options(BaseModel):
    """Permitted values of a parameter, each optionally paired with a media type.

    Two option sets are equal when they hold the same value/media type
    pairs, whatever the declaration order. Hashing sorts the pairs first;
    option sets are small, so the sort is not a concern.
    """

    choices: dict[str, str | None] = Field(default_factory=dict)

    @classmethod
    def from_values(cls, values: Iterable[str]) -> "Options":
        return cls(choices={value: None for value in values})

    def insert(self, value: str, media_type: str | None = None) -> None:
        self.choices[value] = media_type

    def get(self, value: str) -> str | None:
        return self.choices.get(value)

    def keys(self) -> list[str]:
        return list(self.choices)

    def items(self) -> list[tuple[str, str | None]]:
        return list(self.choices.items())

    def sorted_items(self) -> list[tuple[str, str | None]]:
        return sorted(self.choices.items(), key=lambda kv: (kv[0], kv[1] or ""))

    def __contains__(self, value: object) -> bool:
        return value in self.choices

    def __len__(self) -> int:
        return len(self.choices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Options):
            return NotImplemented
        return self.sorted_items() == other.sorted_items()

    def __hash__(self) -> int:
        return hash(tuple(self.sorted_items()))


class OptionsType(BaseModel):
    kind: Literal["options"] = "options"
    options: Options


class NoType(BaseModel):
    kind: Literal["none"] = "none"


TypeRef = Annotated[
    Union[SimpleType, LinkType, OptionsType, NoType],
    Field(discriminator="kind"),
]


class Link(BaseModel):
    resource_type: ResourceTypeRef | None = None
    rel: str | None = None
    rev: str | None = None
    doc: Doc | None = None


class Param(BaseModel):
    """A single parameter of a resource, method, or representation."""

    style: ParamStyle
    id: str | None = None
    name: str
    type: TypeRef = Field(default_factory=NoType)
    path: str | None = None
    required: bool = False
    repeating: bool = False
    fixed: str | None = None
    doc: Doc | None = None
    links: list[Link] = Field(default_factory=list)
    options: Options | None = None

    @property
    def type_name(self) -> str | None:
        """The type as spelled in the document, if it has a spelling."""
        if isinstance(self.type, SimpleType):
            return self.type.name
        if isinstance(self.type, LinkType):
            return str(self.type.resource_type) or None
        if isinstance(self.type, (OptionsType, NoType)):
            return None
        raise TypeError(f"unknown type reference: {self.type!r}")


# Representations


class RepresentationIdRef(BaseModel):
    kind: Literal["id"] = "id"
    ref_id: str

    def id(self) -> str | None:
        return self.ref_id


class RepresentationLinkRef(BaseModel):
    kind: Literal["link"] = "link"
    href: str

    def id(self) -> str | None:
        return _fragment(self.href)


RepresentationRef = Annotated[
    Union[RepresentationIdRef, RepresentationLinkRef],
    Field(discriminator="kind"),
]


class RepresentationDef(BaseModel):
    kind: Literal["definition"] = "definition"
    id: str | None = None
    media_type: str | None = None
    element: str | None = None
    profile: str | None = None
    docs: list[Doc] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)

    def url(self, base_url: str) -> str | None:
        if self.id is None:
            return None
        return _with_fragment(base_url, self.id)

    def as_def(self) -> "RepresentationDef | None":
        return self

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.params


class RepresentationReference(BaseModel):
    kind: Literal["reference"] = "reference"
    ref: RepresentationRef

    @property
    def media_type(self) -> str | None:
        return None

    def url(self, base_url: str) -> str | None:
        if isinstance(self.ref, RepresentationIdRef):
            return _with_fragment(base_url, self.ref.ref_id)
        if isinstance(self.ref, RepresentationLinkRef):
            return urljoin(base_url, self.ref.href)
        raise TypeError(f"unknown representation reference: {self.ref!r}")

    def as_def(self) -> RepresentationDef | None:
        return None

    def iter_all_params(self) -> Iterator[Param]:
        return iter(())


Representation = Annotated[
    Union[RepresentationDef, RepresentationReference],
    Field(discriminator="kind"),
]


# Methods and resources


class Request(BaseModel):
    docs: list[Doc] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)
    representations: list[Representation] = Field(default_factory=list)

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.params
        for rep in self.representations:
            yield from rep.iter_all_params()


class Response(BaseModel):
    docs: list[Doc] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)
    status: int | None = None  # None means any success status
    representations: list[Representation] = Field(default_factory=list)

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.params
        for rep in self.representations:
            yield from rep.iter_all_params()


class Method(BaseModel):
    id: str = ""
    name: str = ""
    docs: list[Doc] = Field(default_factory=list)
    request: Request = Field(default_factory=Request)
    responses: list[Response] = Field(default_factory=list)

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.request.iter_all_params()
        for response in self.responses:
            yield from response.iter_all_params()


class Resource(BaseModel):
    id: str | None = None
    path: str | None = None
    type: list[ResourceTypeRef] = Field(default_factory=list)
    query_type: str = FORM_MIME_TYPE
    methods: list[Method] = Field(default_factory=list)
    docs: list[Doc] = Field(default_factory=list)
    subresources: list["Resource"] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)

    def url(self, base_url: str | None = None) -> str:
        """Absolute URL of this resource under ``base_url``."""
        if self.path is None:
            return base_url or ""
        if not base_url:
            return self.path
        return urljoin(base_url, self.path)

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.params
        for subresource in self.subresources:
            yield from subresource.iter_all_params()
        for method in self.methods:
            yield from method.iter_all_params()


class ResourceType(BaseModel):
    id: str
    query_type: str = FORM_MIME_TYPE
    methods: list[Method] = Field(default_factory=list)
    docs: list[Doc] = Field(default_factory=list)
    subresources: list[Resource] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)

    def iter_all_params(self) -> Iterator[Param]:
        yield from self.params
        for method in self.methods:
            yield from method.iter_all_params()
        for subresource in self.subresources:
            yield from subresource.iter_all_params()


class Resources(BaseModel):
    base: str | None = None
    resources: list[Resource] = Field(default_factory=list)


class Grammar(BaseModel):
    href: str


def _as_directory(url: str) -> str:
    # Children resolve relative to the parent resource, not its parent.
    return url if url.endswith("/") else url + "/"


class Application(BaseModel):
    """Root of a parsed WADL document."""

    resources: list[Resources] = Field(default_factory=list)
    resource_types: list[ResourceType] = Field(default_factory=list)
    representations: list[RepresentationDef] = Field(default_factory=list)
    grammars: list[Grammar] = Field(default_factory=list)
    docs: list[Doc] = Field(default_factory=list)

    def get_resource_type_by_id(self, type_id: str) -> ResourceType | None:
        for resource_type in self.resource_types:
            if resource_type.id == type_id:
                return resource_type
        return None

    def get_resource_type_by_href(self, href: str) -> ResourceType | None:
        # Only the fragment identifies a resource type within this document.
        fragment = _fragment(href)
        if fragment is None:
            return None
        return self.get_resource_type_by_id(fragment)

    def iter_resources(self) -> Iterator[tuple[str, Resource]]:
        """Yield ``(absolute url, resource)`` for every resource, nested ones included."""
        for group in self.resources:
            for resource in group.resources:
                yield from self._walk(group.base, resource)

    def _walk(self, base_url: str | None, resource: Resource) -> Iterator[tuple[str, Resource]]:
        url = resource.url(base_url)
        yield url, resource
        for subresource in resource.subresources:
            yield from self._walk(_as_directory(url), subresource)

    def get_resource_by_href(self, href: str) -> Resource | None:
        for url, resource in self.iter_resources():
            if url == href:
                return resource
        return None

    def get_representation_by_id(self, rep_id: str) -> RepresentationDef | None:
        for rep in self.representations:
            if rep.id == rep_id:
                return rep
        return None

    def resolve_representation(
        self, rep: RepresentationDef | RepresentationReference
    ) -> RepresentationDef | None:
        """Return the definition a representation stands for, if it is in this document."""
        if isinstance(rep, RepresentationDef):
            return rep
        if isinstance(rep, RepresentationReference):
            rep_id = rep.ref.id()
            if rep_id is None:
                return None
            return self.get_representation_by_id(rep_id)
        raise TypeError(f"unknown representation: {rep!r}")

    def iter_all_params(self) -> Iterator[Param]:
        """Every parameter in document order: resources, resource types, representations."""
        for group in self.resources:
            for resource in group.resources:
                yield from resource.iter_all_params()
        for resource_type in self.resource_types:
            yield from resource_type.iter_all_params()
        for rep in self.representations:
            yield from rep.iter_all_params()

    def iter_referenced_types(self) -> Iterator[str]:
        """Yield the spelled type of every parameter that has one."""
        for param in self.iter_all_params():
            type_name = param.type_name
            if type_name is not None:
                yield type_name
