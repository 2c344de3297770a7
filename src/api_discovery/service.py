"""Service model built from a discovery document.

A Service is the entry point used by a generic request pipeline: it
exposes the service metadata, the base URI, the lazily built resource
tree and schema set, and the (de)serialization of request and response
bodies in whichever envelope format the service uses.
"""

import copy
import logging
import threading
from enum import Enum
from types import MappingProxyType
from typing import IO, Any, Mapping

from pydantic import BaseModel

from api_discovery.errors import NotFoundError, ParseError, ProtocolError, ServerError, ValidationError
from api_discovery.json_value import get_mapping, get_required_string, get_string, get_string_list, parse
from api_discovery.parser.base import Method, Resource
from api_discovery.parser.detect import DiscoveryVersion, detect_discovery_version
from api_discovery.parser.resource import parse_resource_v0_3, parse_resource_v1_0, resolve_resource
from api_discovery.parser.schema import Schema, parse_schemas
from api_discovery.serializer import HasError, JsonSerializer, Serializer, StandardResponse

logger = logging.getLogger(__name__)

BASE_PATH_FIELDS = {
    DiscoveryVersion.V1_0: "basePath",
    DiscoveryVersion.V0_3: "restBasePath",
}

RESOURCE_PARSERS = {
    DiscoveryVersion.V1_0: parse_resource_v1_0,
    DiscoveryVersion.V0_3: parse_resource_v0_3,
}


class Feature(str, Enum):
    """Feature flags a discovery document may list under ``features``."""

    LEGACY_DATA_RESPONSE = "dataWrapper"


class ServiceParameters(BaseModel):
    """Externally supplied construction parameters."""

    server_url: str | None = None
    base_path: str | None = None  # overrides the document's base path


class Service:
    """An API described by a discovery document."""

    def __init__(
        self,
        version: str,
        name: str,
        document: dict,
        params: ServiceParameters,
        discovery_version: DiscoveryVersion = DiscoveryVersion.V1_0,
    ):
        for arg, value in (("version", version), ("name", name), ("document", document), ("params", params)):
            if value is None:
                raise ValidationError(f"'{arg}' is required")
        if not isinstance(document, dict):
            raise ValidationError("Discovery document must be a JSON object")
        if not params.server_url:
            raise ValidationError("'params.server_url' is required")

        self._version = version
        self._name = name
        self._document = copy.deepcopy(document)
        self._discovery_version = DiscoveryVersion(discovery_version)

        # Optional metadata
        self.id = get_string(document, "id")
        self.title = get_string(document, "title")
        self.description = get_string(document, "description")
        self.documentation_link = get_string(document, "documentationLink")
        self.protocol = get_string(document, "protocol")
        self.labels = tuple(get_string_list(document, "labels"))
        self.features = tuple(get_string_list(document, "features"))

        self._server_url = params.server_url
        self._base_path = params.base_path or get_required_string(
            document, BASE_PATH_FIELDS[self._discovery_version]
        )
        self.gzip_enabled = True

        self._serializer: Serializer = JsonSerializer()
        self._legacy_response = self.has_feature(Feature.LEGACY_DATA_RESPONSE)
        self._lock = threading.Lock()
        self._resources: Mapping[str, Resource] | None = None
        self._schemas: Mapping[str, Schema] | None = None

    def __repr__(self) -> str:
        return f"Service(name={self._name!r}, version={self._version!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    @property
    def document(self) -> dict:
        """A copy of the raw discovery document."""
        return copy.deepcopy(self._document)

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def base_path(self) -> str:
        return self._base_path

    @property
    def discovery_version(self) -> DiscoveryVersion:
        return self._discovery_version

    @property
    def base_uri(self) -> str:
        """Server URL and base path joined with exactly one slash."""
        server_url, base_path = self.server_url, self.base_path
        if server_url.endswith("/") and base_path.startswith("/"):
            return server_url[:-1] + base_path
        if not server_url.endswith("/") and not base_path.startswith("/"):
            return f"{server_url}/{base_path}"
        return server_url + base_path

    @property
    def rpc_uri(self) -> str:
        return get_required_string(self._document, "rpcUrl")

    @property
    def serializer(self) -> Serializer:
        return self._serializer

    @serializer.setter
    def serializer(self, value: Serializer) -> None:
        if value is None:
            raise ValidationError("'serializer' must not be None")
        self._serializer = value

    @property
    def resources(self) -> Mapping[str, Resource]:
        """Top-level resources, built on first access."""
        if self._resources is None:
            with self._lock:
                if self._resources is None:
                    self._resources = self._build_resources()
        return self._resources

    @property
    def schemas(self) -> Mapping[str, Schema]:
        """Resolved schemas, built on first access."""
        if self._schemas is None:
            with self._lock:
                if self._schemas is None:
                    logger.debug("Fetching schemas for service %s", self._name)
                    values = get_mapping(self._document, "schemas")
                    self._schemas = parse_schemas(values) if values is not None else MappingProxyType({})
        return self._schemas

    def has_feature(self, feature: Feature | str) -> bool:
        value = feature.value if isinstance(feature, Feature) else feature
        return value in self.features

    def resolve_resource(self, full_name: str) -> Resource:
        return resolve_resource(self, full_name)

    def resolve_method(self, resource_name: str, method_name: str) -> Method:
        """Find a method by dotted resource path and method name."""
        resource = resolve_resource(self, resource_name)
        try:
            return resource.methods[method_name]
        except KeyError:
            raise NotFoundError(f"Method '{method_name}' not found in resource '{resource_name}'") from None

    def serialize_request(self, payload: Any) -> str:
        if self._legacy_response:
            return self._serializer.serialize(StandardResponse[Any](data=payload))
        return self._serializer.serialize(payload)

    def deserialize_response(self, raw: bytes | str | IO[bytes], target: Any = Any) -> Any:
        """Deserialize a response body as ``target``.

        Services with the legacy feature wrap the payload under ``data``;
        the others return the payload directly. A populated ``error`` field
        raises ServerError in both formats.
        """
        text = _read_text(raw)

        if self._legacy_response:
            response = self._serializer.deserialize(text, StandardResponse[target])
            if response.error is not None:
                raise ServerError(f"Server error - {response.error}", error=response.error)
            if response.data is None:
                raise ProtocolError("The response could not be deserialized: no 'data' field")
            return response.data

        result = self._serializer.deserialize(text, target)
        if isinstance(result, HasError) and result.error is not None:
            raise ServerError(f"Server error - {result.error}", error=result.error)
        return result

    def _build_resources(self) -> Mapping[str, Resource]:
        values = get_mapping(self._document, "resources")
        if values is None:
            return MappingProxyType({})

        logger.debug("Building resources for service %s", self._name)
        parse_resource = RESOURCE_PARSERS[self._discovery_version]
        return MappingProxyType({name: parse_resource(name, data) for name, data in values.items()})


def create_service(
    discovery_version: DiscoveryVersion | str,
    version: str,
    name: str,
    document: dict,
    params: ServiceParameters,
) -> Service:
    """Create a Service for the given discovery document generation."""
    try:
        discovery_version = DiscoveryVersion(discovery_version)
    except ValueError:
        raise ValidationError(f"Unsupported discovery version: {discovery_version!r}") from None
    return Service(version, name, document, params, discovery_version=discovery_version)


def load_service(
    text: str,
    params: ServiceParameters,
    discovery_version: DiscoveryVersion | str | None = None,
) -> Service:
    """Parse discovery document text and create its Service.

    The generation is detected from the document unless given.
    """
    document = parse(text)
    if not isinstance(document, dict):
        raise ValidationError("Discovery document must be a JSON object")

    name = get_required_string(document, "name")
    version = get_required_string(document, "version")
    if discovery_version is None:
        discovery_version = detect_discovery_version(document)

    logger.debug("Loading %s %s (discovery %s)", name, version, DiscoveryVersion(discovery_version).value)
    return create_service(discovery_version, version, name, document, params)


def _read_text(raw: bytes | str | IO[bytes]) -> str:
    """Return ``raw`` as text; a stream is read to the end and closed."""
    if isinstance(raw, str):
        return raw
    if not isinstance(raw, (bytes, bytearray)):
        with raw:
            raw = raw.read()
        if isinstance(raw, str):
            return raw
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Response is not valid UTF-8: {exc}") from exc
