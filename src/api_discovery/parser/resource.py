"""Resource tree parser for discovery documents.

Builds Resource/Method/Parameter models from the JSON object found under
a document's ``resources`` key, and resolves dotted resource paths such as
``users.items``.
"""

from typing import NamedTuple, Protocol

from api_discovery.errors import NotFoundError, ValidationError
from api_discovery.json_value import get_mapping, get_string, get_string_list
from api_discovery.parser.base import Method, Parameter, Resource


class FieldNames(NamedTuple):
    """Keys that differ between the discovery document generations."""

    method_path: str
    rpc_name: str
    parameter_location: str


FIELDS_V1_0 = FieldNames(method_path="path", rpc_name="id", parameter_location="location")
FIELDS_V0_3 = FieldNames(method_path="restPath", rpc_name="rpcName", parameter_location="restParameterType")


class ResourceContainer(Protocol):
    """Anything holding a name -> Resource mapping (a Service or a Resource)."""

    @property
    def resources(self): ...


def parse_resource_v1_0(name: str, data: dict) -> Resource:
    """Parse a resource of a v1.0 discovery document."""
    return _parse_resource(name, data, FIELDS_V1_0)


def parse_resource_v0_3(name: str, data: dict) -> Resource:
    """Parse a resource of a v0.3 discovery document."""
    return _parse_resource(name, data, FIELDS_V0_3)


def resolve_resource(container: ResourceContainer, full_name: str) -> Resource:
    """Find a resource by its dotted path below ``container``.

    ``"a.b.c"`` looks up ``a`` in the container, then resolves ``"b.c"``
    inside ``a``.
    """
    if full_name is None:
        raise ValidationError("Resource path must not be None")
    if not all(full_name.split(".")):
        raise ValidationError(f"Resource path '{full_name}' contains an empty segment")

    top_name, dot, rest = full_name.partition(".")

    try:
        top = container.resources[top_name]
    except KeyError:
        raise NotFoundError(f"Resource '{top_name}' not found") from None

    if not dot:
        return top
    return resolve_resource(top, rest)


def _parse_resource(name: str, data: dict, fields: FieldNames) -> Resource:
    if not isinstance(data, dict):
        raise ValidationError(f"Resource '{name}' must be an object")

    methods = {
        method_name: _parse_method(method_name, method_data, fields)
        for method_name, method_data in (get_mapping(data, "methods") or {}).items()
    }
    resources = {
        sub_name: _parse_resource(sub_name, sub_data, fields)
        for sub_name, sub_data in (get_mapping(data, "resources") or {}).items()
    }
    return Resource(name=name, methods=methods, resources=resources)


def _parse_method(name: str, data: dict, fields: FieldNames) -> Method:
    if not isinstance(data, dict):
        raise ValidationError(f"Method '{name}' must be an object")

    parameters = {
        param_name: _parse_parameter(param_name, param_data, fields)
        for param_name, param_data in (get_mapping(data, "parameters") or {}).items()
    }
    return Method(
        name=name,
        http_method=(get_string(data, "httpMethod") or "GET").upper(),
        path=get_string(data, fields.method_path) or "",
        rpc_name=get_string(data, fields.rpc_name),
        description=get_string(data, "description") or "",
        parameters=parameters,
        parameter_order=get_string_list(data, "parameterOrder"),
        request_schema=_schema_ref(data, "request"),
        response_schema=_schema_ref(data, "response"),
        scopes=get_string_list(data, "scopes"),
    )


def _parse_parameter(name: str, data: dict, fields: FieldNames) -> Parameter:
    if not isinstance(data, dict):
        raise ValidationError(f"Parameter '{name}' must be an object")

    return Parameter(
        name=name,
        location=get_string(data, fields.parameter_location) or "query",
        type=get_string(data, "type") or "string",
        required=bool(data.get("required", False)),
        repeated=bool(data.get("repeated", False)),
        pattern=get_string(data, "pattern"),
        enum=get_string_list(data, "enum"),
        default=_as_text(data.get("default")),
        minimum=_as_text(data.get("minimum")),
        maximum=_as_text(data.get("maximum")),
        description=get_string(data, "description") or "",
    )


def _schema_ref(data: dict, key: str) -> str | None:
    ref = get_mapping(data, key)
    if ref is None:
        return None
    return get_string(ref, "$ref")


def _as_text(value) -> str | None:
    # Documents write numeric bounds both as strings and as numbers.
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)
