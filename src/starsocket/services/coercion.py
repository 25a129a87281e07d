"""
Coercion Service - Message Body Conversion and Validation

Converts raw inbound payloads into typed handler arguments and flattens
handler results back into plain values for emission. The dispatcher only
decides *when* to call the service; *how* values are converted lives here
so applications can swap the implementation.
"""

import dataclasses
import json
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticSchemaGenerationError

from ..core.errors import FieldError, ParameterParseError
from ..core.metadata import GENERIC_SHAPES, DeclaredType

logger = logging.getLogger(__name__)

_SCALARS = (str, bytes, bytearray, int, float, bool)


class CoercionService(ABC):
    """
    Abstract interface for value coercion, shape mapping and validation.

    Implementations may return awaitables from any method; the parameter
    resolver awaits them.
    """

    @abstractmethod
    def coerce(self, value: Any, declared_type: DeclaredType) -> Any:
        """Coerce a scalar payload to its declared type"""
        pass

    @abstractmethod
    def structured_parse(self, value: Any) -> Any:
        """Parse textual payloads as JSON; raise ``ParameterParseError`` on failure"""
        pass

    @abstractmethod
    def map_to_shape(self, value: Any, shape: type, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Map a plain structure onto an instance of ``shape``"""
        pass

    @abstractmethod
    def validate(self, value: Any, shape: type, options: Optional[Mapping[str, Any]] = None) -> List[FieldError]:
        """
        Return every error of the parsed ``value`` against ``shape``; empty when valid.

        ``value`` is the plain structure that was handed to ``map_to_shape``,
        not the mapped instance.
        """
        pass

    @abstractmethod
    def to_plain(self, value: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Flatten a result or error into plain data for emission"""
        pass


class PydanticCoercionService(CoercionService):
    """
    Default coercion service backed by pydantic.

    Shapes are pydantic models, dataclasses or any type pydantic can build
    a schema for. Plain classes are populated attribute by attribute
    without running their constructor.
    """

    def coerce(self, value: Any, declared_type: DeclaredType) -> Any:
        if declared_type is DeclaredType.NUMBER:
            return to_number(value)
        if declared_type is DeclaredType.BOOLEAN:
            return to_boolean(value)
        return value

    def structured_parse(self, value: Any) -> Any:
        if not isinstance(value, (str, bytes, bytearray)):
            return value
        try:
            return json.loads(value)
        except ValueError:
            raise ParameterParseError(value) from None

    def map_to_shape(self, value: Any, shape: type, options: Optional[Mapping[str, Any]] = None) -> Any:
        options = dict(options or {})
        if shape in GENERIC_SHAPES:
            return value
        if isinstance(value, list):
            return [self.map_to_shape(item, shape, options) for item in value]
        if isinstance(value, shape):
            return value

        if issubclass(shape, BaseModel):
            try:
                return shape.model_validate(value, **options)
            except PydanticValidationError:
                # Leave constraint checking to validate(); mapping never fails
                if isinstance(value, Mapping):
                    return shape.model_construct(**value)
                return value

        adapter = _adapter(shape)
        if adapter is None:
            if isinstance(value, Mapping):
                instance = shape.__new__(shape)
                instance.__dict__.update(value)
                return instance
            return value
        try:
            return adapter.validate_python(value, **options)
        except PydanticValidationError:
            return value

    def validate(self, value: Any, shape: type, options: Optional[Mapping[str, Any]] = None) -> List[FieldError]:
        options = dict(options or {})
        if shape in GENERIC_SHAPES:
            return []
        if isinstance(value, list):
            errors = []
            for i, item in enumerate(value):
                errors.extend(
                    FieldError((i, *error.loc), error.msg, error.type, error.input)
                    for error in self.validate(item, shape, options)
                )
            return errors

        try:
            if issubclass(shape, BaseModel):
                shape.model_validate(value, **options)
            else:
                adapter = _adapter(shape)
                if adapter is None:
                    return []
                adapter.validate_python(value, **options)
        except PydanticValidationError as exc:
            return [FieldError.from_pydantic(error) for error in exc.errors(include_url=False)]
        return []

    def to_plain(self, value: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        options = dict(options or {})
        if value is None or isinstance(value, _SCALARS):
            return value
        if isinstance(value, BaseModel):
            return value.model_dump(**options)
        if isinstance(value, BaseException):
            return self._public_fields(value, options)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            adapter = _adapter(type(value))
            if adapter is not None:
                return adapter.dump_python(value, **options)
        if isinstance(value, Mapping):
            return {key: self.to_plain(item, options) for key, item in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_plain(item, options) for item in value]
        if hasattr(value, '__dict__'):
            return self._public_fields(value, options)
        return value

    def _public_fields(self, value: Any, options: Mapping[str, Any]) -> dict:
        return {
            key: self.to_plain(item, options)
            for key, item in vars(value).items()
            if not key.startswith('_')
        }


def to_number(value: Any) -> Any:
    """Numeric coercion; values that are not numbers become ``nan``."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        if text[:2].lower() in ("0x", "0o", "0b"):
            try:
                return int(text, 0)
            except ValueError:
                return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def to_boolean(value: Any) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    return bool(value)


def _adapter(shape: type) -> Optional[TypeAdapter]:
    try:
        return TypeAdapter(shape)
    except PydanticSchemaGenerationError:
        logger.debug(f"No pydantic schema for {shape!r}; using attribute mapping")
        return None


__all__ = ["CoercionService", "PydanticCoercionService", "to_number", "to_boolean"]
