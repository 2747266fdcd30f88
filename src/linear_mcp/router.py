"""
Resource Router - maps linear:// URIs to fetch operations.

Each feature module owns a slice of the address space by registering
URI templates on a ResourceRouter passed to it at startup:

    linear://teams                  collection, listable
    linear://teams/{id}             one team
    linear://teams/{teamId}/cycles  relationship path

Matching is segment-wise: literal segments must be equal, variable
segments consume exactly one non-empty path segment (percent-decoded).
When two templates could match the same URI, the first registered wins.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

from .errors import (
    DuplicateResourceError,
    InvalidTemplateError,
    ListingUnsupported,
    ResourceNotFound,
    UpstreamNotFound,
)

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/markdown"

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://(.*)$")
_LITERAL_RE = re.compile(r"^[A-Za-z0-9._~\-]+$")
_VARIABLE_RE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


@dataclass(frozen=True)
class ResourceContents:
    """Content produced by resolving a URI."""

    uri: str
    text: str
    mime_type: str = DEFAULT_MIME_TYPE
    found: bool = True


@dataclass(frozen=True)
class ResourceDescriptor:
    """One entry of a collection listing."""

    uri: str
    name: str
    description: str | None = None
    mime_type: str | None = None


ReadOperation = Callable[[str, dict[str, str]], Awaitable[str]]
ListOperation = Callable[[Any], Awaitable[list[ResourceDescriptor]]]


def _split_uri(uri: str) -> tuple[str, list[str]] | None:
    """Split a URI into (scheme, path segments), dropping query and fragment."""
    match = _SCHEME_RE.match(uri)
    if not match:
        return None
    scheme, rest = match.groups()
    path = re.split(r"[?#]", rest, maxsplit=1)[0]
    return scheme.lower(), path.split("/")


class UriTemplate:
    """Immutable URI pattern with zero or more `{name}` variable segments."""

    def __init__(self, template: str) -> None:
        match = _SCHEME_RE.match(template)
        if not match:
            raise InvalidTemplateError(f"Template '{template}' has no scheme")
        scheme, path = match.groups()
        if not path:
            raise InvalidTemplateError(f"Template '{template}' has an empty path")

        segments: list[tuple[bool, str]] = []
        seen: set[str] = set()
        for segment in path.split("/"):
            variable = _VARIABLE_RE.match(segment)
            if variable:
                name = variable.group(1)
                if name in seen:
                    raise InvalidTemplateError(
                        f"Template '{template}' declares variable '{name}' twice"
                    )
                seen.add(name)
                segments.append((True, name))
            elif _LITERAL_RE.match(segment):
                segments.append((False, segment))
            else:
                raise InvalidTemplateError(
                    f"Template '{template}' has an invalid segment '{segment}'"
                )

        self.template = template
        self.scheme = scheme.lower()
        self._segments = tuple(segments)

    @property
    def variables(self) -> tuple[str, ...]:
        return tuple(value for is_var, value in self._segments if is_var)

    @property
    def is_static(self) -> bool:
        return not self.variables

    def match(self, uri: str) -> dict[str, str] | None:
        """Match a concrete URI, returning all bound variables or None."""
        parts = _split_uri(uri)
        if parts is None:
            return None
        scheme, segments = parts
        if scheme != self.scheme or len(segments) != len(self._segments):
            return None

        variables: dict[str, str] = {}
        for (is_var, value), segment in zip(self._segments, segments, strict=True):
            if is_var:
                if not segment:
                    return None
                variables[value] = unquote(segment)
            elif segment != value:
                return None
        return variables

    def expand(self, **variables: str) -> str:
        """Build a concrete URI; values are percent-encoded so match() round-trips."""
        missing = set(self.variables) - set(variables)
        if missing:
            raise KeyError(f"Missing template variables: {', '.join(sorted(missing))}")
        segments = [
            quote(str(variables[value]), safe="") if is_var else value
            for is_var, value in self._segments
        ]
        return f"{self.scheme}://" + "/".join(segments)

    def overlaps(self, other: "UriTemplate") -> bool:
        """True when some URI could match both templates."""
        if self.scheme != other.scheme or len(self._segments) != len(other._segments):
            return False
        return all(
            a_var or b_var or a == b
            for (a_var, a), (b_var, b) in zip(self._segments, other._segments, strict=True)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UriTemplate):
            return NotImplemented
        return self.template == other.template

    def __hash__(self) -> int:
        return hash(self.template)

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"


@dataclass(frozen=True)
class ResourceRegistration:
    """A resource name bound to a template, a read operation and an optional lister."""

    name: str
    template: UriTemplate
    read: ReadOperation
    list_resources: ListOperation | None = None
    description: str | None = None
    mime_type: str = DEFAULT_MIME_TYPE


class ResourceRouter:
    """Dispatches URIs to the read and list operations registered for them.

    The registration table is filled once at startup and only read
    afterwards, so a router can serve concurrent requests without locking.
    """

    def __init__(self) -> None:
        self._registrations: list[ResourceRegistration] = []
        self._names: set[str] = set()

    def register(
        self,
        name: str,
        template: str | UriTemplate,
        read: ReadOperation,
        *,
        description: str | None = None,
        list_resources: ListOperation | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> ResourceRegistration:
        """
        Register a resource.

        Args:
            name: Resource name, unique per router (e.g., "team")
            template: URI template (e.g., "linear://teams/{id}")
            read: Coroutine (uri, variables) -> text
            description: Human-readable description
            list_resources: Optional coroutine (context) -> descriptors,
                making the template's URI listable
            mime_type: MIME type of the read operation's text

        Returns:
            The stored registration

        Raises:
            InvalidTemplateError: If the template is malformed
            DuplicateResourceError: If the name is already registered
        """
        if name in self._names:
            raise DuplicateResourceError(f"Resource '{name}' is already registered")
        parsed = template if isinstance(template, UriTemplate) else UriTemplate(template)

        for existing in self._registrations:
            if existing.template.overlaps(parsed):
                logger.debug(
                    "Template %s overlaps %s (%s); %s takes precedence",
                    parsed.template,
                    existing.template.template,
                    existing.name,
                    existing.name,
                )

        registration = ResourceRegistration(
            name=name,
            template=parsed,
            read=read,
            list_resources=list_resources,
            description=description,
            mime_type=mime_type,
        )
        self._registrations.append(registration)
        self._names.add(name)
        logger.debug("Registered resource %s at %s", name, parsed.template)
        return registration

    def resource(
        self,
        name: str,
        template: str | UriTemplate,
        *,
        description: str | None = None,
        list_resources: ListOperation | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> Callable[[ReadOperation], ReadOperation]:
        """Decorator form of register(); the decorated coroutine is the read operation."""

        def decorator(read: ReadOperation) -> ReadOperation:
            self.register(
                name,
                template,
                read,
                description=description,
                list_resources=list_resources,
                mime_type=mime_type,
            )
            return read

        return decorator

    def match(self, uri: str) -> tuple[ResourceRegistration, dict[str, str]]:
        """Find the first registration matching a URI.

        Raises:
            ResourceNotFound: If no template matches
        """
        for registration in self._registrations:
            variables = registration.template.match(uri)
            if variables is not None:
                return registration, variables
        logger.warning("No resource template matches %s", uri)
        raise ResourceNotFound(uri)

    async def resolve(self, uri: str) -> ResourceContents:
        """
        Resolve a URI to content.

        A backend "not found" is returned as content with found=False;
        every other backend failure propagates unchanged.

        Raises:
            ResourceNotFound: If no template matches (no backend call is made)
            BackendError: If the read operation's backend call fails
        """
        registration, variables = self.match(uri)
        logger.debug("Resolving %s via %s %s", uri, registration.name, variables)
        try:
            text = await registration.read(uri, variables)
        except UpstreamNotFound as e:
            logger.info("Resource %s not found upstream: %s", uri, e)
            return ResourceContents(uri=uri, text=str(e), mime_type="text/plain", found=False)
        return ResourceContents(uri=uri, text=text, mime_type=registration.mime_type)

    async def list_all(self, context: Any = None) -> list[ResourceDescriptor]:
        """Concatenate the listings of every listable registration, in registration order."""
        descriptors: list[ResourceDescriptor] = []
        for registration in self._registrations:
            if registration.list_resources is not None:
                descriptors.extend(await registration.list_resources(context))
        return descriptors

    def templates(self) -> list[ResourceRegistration]:
        """All registrations, in registration order."""
        return list(self._registrations)

    def __len__(self) -> int:
        return len(self._registrations)

    # Defined last: inside the class body this name shadows the builtin
    async def list(self, collection_uri: str, context: Any = None) -> list[ResourceDescriptor]:
        """
        List the children of a collection URI.

        Raises:
            ResourceNotFound: If no template matches
            ListingUnsupported: If the matched registration has no lister
        """
        registration, _ = self.match(collection_uri)
        if registration.list_resources is None:
            raise ListingUnsupported(collection_uri, registration.name)
        return await registration.list_resources(context)
