"""Request/response serialization and the response envelope models."""

from typing import Any, Generic, Protocol, TypeVar

import pydantic
from pydantic import BaseModel, TypeAdapter
from pydantic_core import to_jsonable_python

from api_discovery.errors import ParseError
from api_discovery.json_value import parse, serialize

T = TypeVar("T")


class HasError(BaseModel):
    """Base for response types whose payload carries the server's error field.

    Response models opt into server-error detection by subclassing this.
    """

    error: Any | None = None


class StandardResponse(BaseModel, Generic[T]):
    """Legacy response envelope: the payload is wrapped under ``data``."""

    data: T | None = None
    error: Any | None = None


class Serializer(Protocol):
    def serialize(self, obj: Any) -> str: ...

    def deserialize(self, text: str, target: Any = Any) -> Any: ...


class JsonSerializer:
    """Serializer for JSON text backed by pydantic validation."""

    def serialize(self, obj: Any) -> str:
        return serialize(to_jsonable_python(obj, by_alias=True, exclude_none=True))

    def deserialize(self, text: str, target: Any = Any) -> Any:
        """Parse ``text`` and validate it as ``target``.

        Raises ParseError for invalid JSON and for JSON that does not fit
        ``target``.
        """
        value = parse(text)
        try:
            return TypeAdapter(target).validate_python(value)
        except pydantic.ValidationError as exc:
            raise ParseError(f"Could not deserialize response as {_type_name(target)}: {exc}") from exc


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)
