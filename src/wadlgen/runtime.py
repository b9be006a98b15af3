"""Support code imported by generated client bindings.

Generated methods take a client object with a ``request(method, url,
**kwargs)`` method returning a response with ``status_code``, ``headers``,
``content``, ``text`` and ``json()``. ``requests.Session`` fits as is;
``httpx.AsyncClient`` fits the async flavor.
"""

import base64
import datetime
import enum
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Mapping, Optional, Protocol, TypeVar

import requests
from pydantic import BaseModel, ConfigDict

from wadlgen.parser.base import WADL_MIME_TYPE, media_type_essence
from wadlgen.parser.base import Resource as WadlResource
from wadlgen.parser.wadl import parse_bytes

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class HttpResponse(Protocol):
    status_code: int
    headers: Mapping[str, str]
    content: bytes
    text: str

    def json(self) -> Any: ...


class Client(Protocol):
    def request(self, method: str, url: str, **kwargs: Any) -> HttpResponse: ...


class AsyncClient(Protocol):
    async def request(self, method: str, url: str, **kwargs: Any) -> HttpResponse: ...


class WadlError(Exception):
    """Base class for errors raised by generated bindings."""


class UnhandledStatus(WadlError):
    """The server answered with a status the description does not cover."""

    def __init__(self, status: int):
        super().__init__(f"Unhandled status: {status}")
        self.status = status


class UnhandledContentType(WadlError):
    """The server answered with a content type the description does not cover."""

    def __init__(self, content_type: str | None):
        super().__init__(f"Unhandled content type: {content_type}")
        self.content_type = content_type


class Resource(ABC):
    """Something with a URL."""

    @property
    @abstractmethod
    def url(self) -> str: ...

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return type(self) is type(other) and self.url == other.url

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.url))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class Representation(BaseModel):
    """Base class of generated records; aliases hold the wire names."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    @classmethod
    def from_json(cls, data: Any):
        return cls.model_validate(data)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StatusResult(BaseModel, Generic[T]):
    """What a method with several responses returns: the status and its value."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    status: int
    value: T


def media_type_of(resp: HttpResponse) -> str | None:
    """The essence of a response's Content-Type, e.g. ``application/json``."""
    return media_type_essence(resp.headers.get("Content-Type"))


def format_param(value: Any) -> str:
    """Render a parameter value the way it is sent in URLs, headers and forms."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, Resource):
        return value.url
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


def to_json_value(value: Any) -> Any:
    """Render a parameter value for a JSON request body."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Resource):
        return value.url
    if isinstance(value, Representation):
        return value.to_json()
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def parse_bool(text: str) -> bool:
    return text.strip().lower() in ("true", "1", "yes")


def map_optional(fn: Callable[[T], R], value: Optional[T]) -> Optional[R]:
    return None if value is None else fn(value)


def _wadl_resource(resp: HttpResponse, url: str) -> WadlResource:
    if not 200 <= resp.status_code < 300:
        raise UnhandledStatus(resp.status_code)
    content_type = media_type_of(resp)
    if content_type != WADL_MIME_TYPE:
        raise UnhandledContentType(content_type)
    app = parse_bytes(resp.content)
    resource = app.get_resource_by_href(url)
    if resource is None:
        raise WadlError(f"Resource not found in WADL: {url}")
    return resource


def fetch_wadl_resource(
    client: Client, url: str, params: list[tuple[str, str]] | None = None
) -> WadlResource:
    """Fetch the WADL description of the resource at ``url``."""
    logger.debug("Fetching WADL for %s", url)
    resp = client.request("GET", url, params=params or [], headers={"Accept": WADL_MIME_TYPE})
    return _wadl_resource(resp, url)


async def fetch_wadl_resource_async(
    client: AsyncClient, url: str, params: list[tuple[str, str]] | None = None
) -> WadlResource:
    logger.debug("Fetching WADL for %s", url)
    resp = await client.request("GET", url, params=params or [], headers={"Accept": WADL_MIME_TYPE})
    return _wadl_resource(resp, url)


def default_client(headers: Mapping[str, str] | None = None) -> requests.Session:
    """A ``requests`` session usable as the ``client`` of generated methods."""
    session = requests.Session()
    if headers:
        session.headers.update(headers)
    return session
