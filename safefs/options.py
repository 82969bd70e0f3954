"""Per-call option records."""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class _CallOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ReadOptions(_CallOptions):
    """Options for read()."""

    safe: bool = False  # Fall back to the backup file if the primary is missing


class WriteOptions(_CallOptions):
    """Options for write()."""

    safe: bool = False  # Stage, back up and swap instead of writing in place
    mode: int | None = Field(default=None, ge=0, le=0o7777)  # Permission bits on creation
    json_indent: int | None = Field(default=None, alias="jsonIndent")


class AppendOptions(_CallOptions):
    """Options for append()."""

    mode: int | None = Field(default=None, ge=0, le=0o7777)
    encoding: str = "utf-8"  # Used when data is text


OptionsT = TypeVar("OptionsT", bound=_CallOptions)


def coerce_options(
    model: type[OptionsT], options: OptionsT | Mapping[str, Any] | None
) -> OptionsT:
    """Accept None, a plain mapping (camelCase or snake_case keys) or the model itself."""
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, Mapping):
        return model.model_validate(dict(options))
    raise TypeError(f"Expected {model.__name__}, a mapping or None, got {type(options).__name__}")
