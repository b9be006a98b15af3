"""WADL document parser.

Reads a WADL XML document into the models in ``wadlgen.parser.base``.
Elements are matched by local name; unknown elements are skipped.
"""

import copy
import io
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO

from pydantic import AnyUrl, TypeAdapter, ValidationError

from wadlgen.diagnostics import Diagnostics
from wadlgen.parser.base import (
    FORM_MIME_TYPE,
    XHTML_NS,
    Application,
    Doc,
    EmptyResourceTypeRef,
    Grammar,
    Link,
    LinkType,
    Method,
    NoType,
    Options,
    OptionsType,
    Param,
    ParamStyle,
    RepresentationDef,
    RepresentationIdRef,
    RepresentationLinkRef,
    RepresentationReference,
    Request,
    Resource,
    ResourceType,
    ResourceTypeId,
    ResourceTypeLink,
    Resources,
    Response,
    SimpleType,
)
from wadlgen.parser.errors import (
    InvalidAttributeError,
    IoError,
    MediaTypeError,
    MissingAttributeError,
    UrlError,
    XmlError,
)

logger = logging.getLogger(__name__)

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

_URL = TypeAdapter(AnyUrl)
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_REFERENCE_INVALID_RE = re.compile(r"[\s<>\"{}|\\^`\x00-\x1f\x7f]")
_TOKEN = r"[A-Za-z0-9!#$%&'*+.^_`|~-]+"
_MEDIA_TYPE_RE = re.compile(
    rf'^{_TOKEN}/{_TOKEN}(\s*;\s*{_TOKEN}=({_TOKEN}|"[^"]*"))*\s*$'
)

RESOURCE_PARAM_STYLES = (ParamStyle.TEMPLATE, ParamStyle.MATRIX, ParamStyle.QUERY, ParamStyle.HEADER)
RESOURCE_TYPE_PARAM_STYLES = (ParamStyle.HEADER, ParamStyle.QUERY)
REQUEST_PARAM_STYLES = (ParamStyle.HEADER, ParamStyle.QUERY)
RESPONSE_PARAM_STYLES = (ParamStyle.HEADER,)
REPRESENTATION_PARAM_STYLES = (ParamStyle.PLAIN, ParamStyle.QUERY)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str | None:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [c for c in element if isinstance(c.tag, str) and _local(c.tag) == name]


def _required(element: ET.Element, attribute: str) -> str:
    value = element.get(attribute)
    if value is None:
        raise MissingAttributeError(_local(element.tag), attribute)
    return value


def _flag(element: ET.Element, attribute: str) -> bool:
    return element.get(attribute) == "true"


def parse_url(value: str) -> str:
    """Check that ``value`` is an absolute URL and return it unchanged."""
    try:
        _URL.validate_python(value)
    except ValidationError as e:
        raise UrlError(value, e.errors()[0]["msg"]) from e
    return value


def parse_url_reference(value: str) -> str:
    """Check that ``value`` is an absolute URL or a relative reference."""
    if _SCHEME_RE.match(value):
        return parse_url(value)
    match = _REFERENCE_INVALID_RE.search(value)
    if match is not None:
        raise UrlError(value, f"invalid character {match.group()!r} in relative reference")
    return value


def parse_media_type(value: str) -> str:
    value = value.strip()
    if not _MEDIA_TYPE_RE.match(value):
        raise MediaTypeError(value)
    return value


def parse_resource_type_ref(text: str):
    """Parse ``#id``, an absolute link, or the empty string."""
    if text == "":
        return EmptyResourceTypeRef()
    if text.startswith("#"):
        return ResourceTypeId(type_id=text[1:])
    return ResourceTypeLink(href=parse_url(text))


def _representation_ref(text: str):
    if text.startswith("#"):
        return RepresentationIdRef(ref_id=text[1:])
    return RepresentationLinkRef(href=parse_url(text))


def _strip_namespaces(element: ET.Element) -> ET.Element:
    stripped = copy.deepcopy(element)
    for node in stripped.iter():
        if not isinstance(node.tag, str):
            continue
        node.tag = _local(node.tag)
        for key in list(node.attrib):
            if key.startswith("{"):
                node.attrib[_local(key)] = node.attrib.pop(key)
    return stripped


def _read_tree(source: IO[bytes]) -> tuple[ET.Element, dict[ET.Element, str | None]]:
    """Parse XML, recording the default namespace in scope at every element."""
    default_ns: dict[ET.Element, str | None] = {}
    scope: list[str | None] = []
    pending: list[str | None] = []
    root = None
    try:
        for event, item in ET.iterparse(source, events=("start-ns", "start", "end")):
            if event == "start-ns":
                prefix, uri = item
                if not prefix:
                    pending.append(uri or None)
            elif event == "start":
                if pending:
                    current = pending[-1]
                else:
                    current = scope[-1] if scope else None
                pending = []
                default_ns[item] = current
                scope.append(current)
                if root is None:
                    root = item
            else:
                scope.pop()
    except ET.ParseError as e:
        raise XmlError(str(e)) from e
    if root is None:
        raise XmlError("no root element")
    return root, default_ns


class _Reader:
    """Builds IR nodes from an element tree."""

    def __init__(self, namespaces: dict[ET.Element, str | None], diagnostics: Diagnostics):
        self.namespaces = namespaces
        self.diagnostics = diagnostics

    def application(self, root: ET.Element) -> Application:
        if _local(root.tag) != "application":
            raise XmlError(f"expected <application> root element, found <{_local(root.tag)}>")
        app = Application(docs=self.docs(root))
        for child in root:
            if not isinstance(child.tag, str):
                continue
            name = _local(child.tag)
            if name == "resources":
                app.resources.append(self.resources(child))
            elif name == "resource_type":
                app.resource_types.append(self.resource_type(child))
            elif name == "representation":
                rep = self.representation(child)
                if isinstance(rep, RepresentationDef):
                    app.representations.append(rep)
                else:
                    self.diagnostics.warn("ignoring representation reference at document level")
            elif name == "grammars":
                for include in _children(child, "include"):
                    app.grammars.append(Grammar(href=parse_url_reference(_required(include, "href"))))
        return app

    def resources(self, element: ET.Element) -> Resources:
        base = element.get("base")
        return Resources(
            base=parse_url(base) if base is not None else None,
            resources=[self.resource(c) for c in _children(element, "resource")],
        )

    def resource(self, element: ET.Element) -> Resource:
        type_attr = element.get("type", "")
        return Resource(
            id=element.get("id"),
            path=element.get("path"),
            type=[parse_resource_type_ref(t) for t in type_attr.split()],
            query_type=parse_media_type(element.get("queryType", FORM_MIME_TYPE)),
            methods=self.methods(element),
            docs=self.docs(element),
            subresources=[self.resource(c) for c in _children(element, "resource")],
            params=self.params(element, RESOURCE_PARAM_STYLES),
        )

    def resource_type(self, element: ET.Element) -> ResourceType:
        return ResourceType(
            id=_required(element, "id"),
            query_type=parse_media_type(element.get("queryType", FORM_MIME_TYPE)),
            methods=self.methods(element),
            docs=self.docs(element),
            subresources=[self.resource(c) for c in _children(element, "resource")],
            params=self.params(element, RESOURCE_TYPE_PARAM_STYLES),
        )

    def methods(self, element: ET.Element) -> list[Method]:
        methods = []
        for child in _children(element, "method"):
            if child.get("href") is not None and child.get("name") is None:
                self.diagnostics.warn(f"ignoring method reference {child.get('href')!r}")
                continue
            methods.append(self.method(child))
        return methods

    def method(self, element: ET.Element) -> Method:
        requests = _children(element, "request")
        return Method(
            id=element.get("id", ""),
            name=element.get("name", ""),
            docs=self.docs(element),
            request=self.request(requests[0]) if requests else Request(),
            responses=[self.response(c) for c in _children(element, "response")],
        )

    def request(self, element: ET.Element) -> Request:
        return Request(
            docs=self.docs(element),
            params=self.params(element, REQUEST_PARAM_STYLES),
            representations=self.representations(element),
        )

    def response(self, element: ET.Element) -> Response:
        return Response(
            docs=self.docs(element),
            params=self.params(element, RESPONSE_PARAM_STYLES),
            status=self.status(element),
            representations=self.representations(element),
        )

    def status(self, element: ET.Element) -> int | None:
        value = element.get("status")
        if value is None:
            return None
        codes = value.split()
        if len(codes) > 1:
            self.diagnostics.warn(f"response lists several statuses {value!r}, using {codes[0]}")
        try:
            return int(codes[0])
        except (ValueError, IndexError):
            raise InvalidAttributeError("response", "status", value)

    def representations(self, element: ET.Element):
        return [self.representation(c) for c in _children(element, "representation")]

    def representation(self, element: ET.Element):
        href = element.get("href")
        if href is not None:
            return RepresentationReference(ref=_representation_ref(href))
        media_type = element.get("mediaType")
        return RepresentationDef(
            id=element.get("id"),
            media_type=parse_media_type(media_type) if media_type is not None else None,
            element=element.get("element"),
            profile=element.get("profile"),
            docs=self.docs(element),
            params=self.params(element, REPRESENTATION_PARAM_STYLES),
        )

    def params(self, element: ET.Element, allowed: tuple[ParamStyle, ...]) -> list[Param]:
        return [self.param(c, allowed) for c in _children(element, "param")]

    def param(self, element: ET.Element, allowed: tuple[ParamStyle, ...]) -> Param:
        name = _required(element, "name")
        style_attr = _required(element, "style")
        try:
            style = ParamStyle(style_attr)
        except ValueError:
            raise InvalidAttributeError("param", "style", style_attr)
        if style not in allowed:
            self.diagnostics.warn(f"param {name!r} has style {style.value!r}, not expected here")

        links = [self.link(c) for c in _children(element, "link")]
        options = self.options(element)
        type_attr = element.get("type")
        if type_attr is not None:
            type_ref = SimpleType(name=type_attr)
        elif links:
            type_ref = LinkType(resource_type=links[0].resource_type or EmptyResourceTypeRef())
        elif options is not None:
            type_ref = OptionsType(options=options)
        else:
            type_ref = NoType()

        doc = self._single_doc(element, f"param {name!r}")
        return Param(
            style=style,
            id=element.get("id"),
            name=name,
            type=type_ref,
            path=element.get("path"),
            required=_flag(element, "required"),
            repeating=_flag(element, "repeating"),
            fixed=element.get("fixed"),
            doc=doc,
            links=links,
            options=options,
        )

    def options(self, element: ET.Element) -> Options | None:
        children = _children(element, "option")
        if not children:
            return None
        options = Options()
        for child in children:
            media_type = child.get("mediaType")
            options.insert(
                _required(child, "value"),
                parse_media_type(media_type) if media_type is not None else None,
            )
        return options

    def link(self, element: ET.Element) -> Link:
        resource_type = element.get("resource_type")
        return Link(
            resource_type=parse_resource_type_ref(resource_type) if resource_type is not None else None,
            rel=element.get("rel"),
            rev=element.get("rev"),
            doc=self._single_doc(element, "link"),
        )

    def docs(self, element: ET.Element) -> list[Doc]:
        return [self.doc(c) for c in _children(element, "doc")]

    def _single_doc(self, element: ET.Element, owner: str) -> Doc | None:
        docs = self.docs(element)
        if len(docs) > 1:
            self.diagnostics.warn(f"{owner} has {len(docs)} doc elements, keeping the first")
        return docs[0] if docs else None

    def doc(self, element: ET.Element) -> Doc:
        parts = [element.text or ""]
        xmlns = self.namespaces.get(element)
        for child in element:
            if isinstance(child.tag, str) and _namespace(child.tag) == XHTML_NS:
                xmlns = XHTML_NS
            parts.append(ET.tostring(_strip_namespaces(child), encoding="unicode"))
        return Doc(
            title=element.get("title"),
            lang=element.get(XML_LANG, element.get("lang")),
            content="".join(parts),
            xmlns=xmlns,
        )


def parse(source: IO[bytes], diagnostics: Diagnostics | None = None) -> Application:
    """Parse a WADL document from a binary stream."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    root, namespaces = _read_tree(source)
    app = _Reader(namespaces, diagnostics).application(root)
    logger.debug(
        "Parsed %d resource groups, %d resource types, %d representations",
        len(app.resources), len(app.resource_types), len(app.representations),
    )
    return app


def parse_bytes(data: bytes, diagnostics: Diagnostics | None = None) -> Application:
    return parse(io.BytesIO(data), diagnostics)


def parse_string(text: str, diagnostics: Diagnostics | None = None) -> Application:
    return parse_bytes(text.encode("utf-8"), diagnostics)


def parse_file(path: Path | str, diagnostics: Diagnostics | None = None) -> Application:
    """Read and parse a WADL file."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise IoError(str(path), e.strerror or str(e)) from e
    return parse_bytes(data, diagnostics)
