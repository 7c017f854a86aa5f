"""Strict parsing of JSON oracle output into typed models."""

import json
from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from memory_graph.exceptions import OracleParseError
from memory_graph.intelligence.calls import truncate

M = TypeVar("M", bound=BaseModel)


def load_json_object(content: str, source: str) -> dict:
    try:
        data: Any = json.loads(content)
    except (json.JSONDecodeError, TypeError) as e:
        raise OracleParseError(
            f"{source} returned invalid JSON: {truncate(str(content))!r}", source=source
        ) from e
    if not isinstance(data, dict):
        raise OracleParseError(f"{source} returned {type(data).__name__}, expected object", source=source)
    return data


def parse_model(data: Any, model: Type[M], source: str) -> M:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise OracleParseError(f"{source} returned malformed fields: {e}", source=source) from e
