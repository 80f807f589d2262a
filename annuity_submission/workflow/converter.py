"""Custom Temporal DataConverter for the submission frozen-dataclass types.

Handles serialization of: Decimal, date, datetime, Enum, and discriminated
dataclass unions (Owner, Beneficiary, ApplicationState, ...) by adding
__type__ / __enum__ tags during encoding.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
import types
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Union, get_args, get_origin, get_type_hints

from temporalio.converter import (
    CompositePayloadConverter,
    DataConverter,
    DefaultPayloadConverter,
    JSONPlainPayloadConverter,
    JSONTypeConverter,
)

# ---------------------------------------------------------------------------
# Recursive serializer (replaces dataclasses.asdict)
# ---------------------------------------------------------------------------


def _fqn(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _to_json(obj: Any) -> Any:
    """Recursively convert submission objects to JSON-compatible values.

    Dataclass instances and enum members carry their class name, so union
    fields and Optional enums decode without consulting type hints.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return {"__enum__": _fqn(type(obj)), "value": obj.value}
    if isinstance(obj, Decimal):
        return {"__decimal__": str(obj)}
    if isinstance(obj, datetime):
        return {"__datetime__": obj.isoformat()}
    if isinstance(obj, date):
        return {"__date__": obj.isoformat()}
    if isinstance(obj, timedelta):
        return {"__timedelta_s__": obj.total_seconds()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        d: dict[str, Any] = {"__type__": _fqn(type(obj))}
        for field in dataclasses.fields(obj):
            d[field.name] = _to_json(getattr(obj, field.name))
        return d
    if isinstance(obj, (tuple, list)):
        return [_to_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    raise TypeError(f"Cannot serialize {type(obj).__name__} for Temporal")


class SubmissionJSONEncoder(json.JSONEncoder):
    """JSON encoder using _to_json for full submission type support."""

    def default(self, o: Any) -> Any:
        return _to_json(o)


# ---------------------------------------------------------------------------
# Recursive deserializer
# ---------------------------------------------------------------------------

# Security: only resolve classes from these modules.
_ALLOWED_MODULES: frozenset[str] = frozenset({
    "annuity_submission.core.errors",
    "annuity_submission.core.types",
    "annuity_submission.gateway.types",
    "annuity_submission.infra.config",
    "annuity_submission.model.application",
    "annuity_submission.model.funding",
    "annuity_submission.model.parties",
    "annuity_submission.model.snapshot",
    "annuity_submission.model.state",
    "annuity_submission.model.status",
    "annuity_submission.model.suitability",
    "annuity_submission.workflow.types",
})

# Cache for class resolution
_CLASS_CACHE: dict[str, type] = {}


def _resolve_class(fqn: str) -> type | None:
    """Resolve a fully qualified class name to a type.

    Only classes from ``_ALLOWED_MODULES`` are resolved, so a crafted
    payload cannot instantiate arbitrary classes.
    """
    if fqn in _CLASS_CACHE:
        return _CLASS_CACHE[fqn]
    module_name, _, class_name = fqn.rpartition(".")
    if module_name not in _ALLOWED_MODULES:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    cls = getattr(module, class_name, None)
    if isinstance(cls, type):
        _CLASS_CACHE[fqn] = cls
        return cls
    return None


def _unwrap_optional(hint: Any) -> Any:
    """X | None -> X; any other hint is returned unchanged."""
    if get_origin(hint) in (Union, types.UnionType):
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _from_json(hint: Any, value: Any) -> Any:  # noqa: C901, PLR0911
    """Recursively convert JSON values back to submission types."""
    if value is None:
        return None
    hint = _unwrap_optional(hint)

    if isinstance(value, dict):
        if "__type__" in value:
            cls = _resolve_class(value["__type__"])
            if cls is None or not dataclasses.is_dataclass(cls):
                raise TypeError(f"Unknown or disallowed type tag {value['__type__']!r}")
            hints = get_type_hints(cls)
            kwargs: dict[str, Any] = {}
            for field in dataclasses.fields(cls):
                if field.name in value:
                    kwargs[field.name] = _from_json(hints.get(field.name, Any), value[field.name])
            return cls(**kwargs)
        if "__enum__" in value:
            enum_cls = _resolve_class(value["__enum__"])
            if enum_cls is None or not issubclass(enum_cls, Enum):
                raise TypeError(f"Unknown or disallowed enum tag {value['__enum__']!r}")
            return enum_cls(value["value"])
        if "__decimal__" in value:
            return Decimal(value["__decimal__"])
        if "__datetime__" in value:
            return datetime.fromisoformat(value["__datetime__"])
        if "__date__" in value:
            return date.fromisoformat(value["__date__"])
        if "__timedelta_s__" in value:
            return timedelta(seconds=value["__timedelta_s__"])
        return {k: _from_json(Any, v) for k, v in value.items()}

    if hint is Decimal and isinstance(value, (int, float, str)):
        return Decimal(str(value))
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)

    # tuple from list
    if isinstance(value, list):
        args = get_args(hint)
        item_hint = args[0] if args else Any
        return tuple(_from_json(item_hint, x) for x in value)

    return value


class SubmissionJSONTypeConverter(JSONTypeConverter):
    """Deserialize tagged JSON values back to submission types."""

    def to_typed_value(self, hint: type, value: Any) -> Any:
        if isinstance(value, dict) and any(
            tag in value
            for tag in ("__type__", "__enum__", "__decimal__", "__datetime__", "__date__",
                        "__timedelta_s__")
        ):
            return _from_json(hint, value)
        if isinstance(value, list) and get_origin(hint) is tuple:
            return _from_json(hint, value)
        # Python 3.12 type aliases (type Owner = ...) are TypeAliasType
        # instances Temporal cannot resolve; decode their underlying union.
        if hasattr(hint, "__value__"):
            return _from_json(hint.__value__, value)
        return JSONTypeConverter.Unhandled


# ---------------------------------------------------------------------------
# Wire up
# ---------------------------------------------------------------------------


class SubmissionPayloadConverter(CompositePayloadConverter):
    """Payload converter with submission-aware JSON handling."""

    def __init__(self) -> None:
        json_converter = JSONPlainPayloadConverter(
            encoder=SubmissionJSONEncoder,
            custom_type_converters=[SubmissionJSONTypeConverter()],
        )
        super().__init__(
            *(
                c
                for c in DefaultPayloadConverter.default_encoding_payload_converters
                if not isinstance(c, JSONPlainPayloadConverter)
            ),
            json_converter,
        )


SUBMISSION_DATA_CONVERTER = DataConverter(
    payload_converter_class=SubmissionPayloadConverter,
)
