"""Data models for the resource tree of a discovery document.

Both discovery generations (v0.3 and v1.0) are parsed into these
models by parser.resource. Models are frozen and their mappings are
read-only views, so a built tree cannot change.
"""

from types import MappingProxyType
from typing import Annotated, Any, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, WrapSerializer

T = TypeVar("T")


def _as_dict(value, handler):
    return handler(dict(value))


# dict[str, T] stored as a MappingProxyType, dumped as a plain dict
FrozenDict = Annotated[dict[str, T], AfterValidator(MappingProxyType), WrapSerializer(_as_dict)]


class Parameter(BaseModel):
    """A single method parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str  # path / query
    type: str = "string"
    required: bool = False
    repeated: bool = False
    pattern: str | None = None
    enum: tuple[str, ...] = ()
    default: str | None = None
    minimum: str | None = None
    maximum: str | None = None
    description: str = ""


class Method(BaseModel):
    """A callable method of a resource."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str
    http_method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # users/{userId}/items
    rpc_name: str | None = None
    description: str = ""
    parameters: FrozenDict[Parameter] = {}
    parameter_order: tuple[str, ...] = ()
    request_schema: str | None = None
    response_schema: str | None = None
    scopes: tuple[str, ...] = ()


class Resource(BaseModel):
    """A named group of methods and sub-resources."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str
    methods: FrozenDict[Method] = {}
    resources: FrozenDict["Resource"] = {}

    def summary(self) -> dict[str, Any]:
        """Method and sub-resource names as a nested plain dict."""
        return {
            "methods": sorted(self.methods),
            "resources": {name: r.summary() for name, r in sorted(self.resources.items())},
        }
