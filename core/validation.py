"""
Input Validation Utilities.

Reusable constraint types for request schemas plus the helpers that keep the
create and update paths of every resource on the same rules.

Key Components:
- Constraint types (`NonEmptyStr`, `Proficiency`, `OptionalUrl`, ...): Pydantic
  `Annotated` aliases. A schema declares a field with one of these and gets the
  same presence, length, range or URL rule wherever the alias is used.
- `partial_model`: derives the update schema from a create schema. Every field
  becomes optional with its constraints intact, and an explicit `null` is
  rejected on any field whose column cannot hold null.
- `violations_from_errors`: flattens Pydantic error lists into the
  `[{field, message}]` shape returned to clients.
- `estimate_read_time`: minutes needed to read a blog post body.
"""

import math
import re
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Sequence, Type, get_args
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    Field,
    create_model,
    field_validator,
)

WORDS_PER_MINUTE = 200
_WHITESPACE = re.compile(r"\s+")


def blank_to_none(value: Any) -> Any:
    """Treat an empty (or whitespace-only) string as an unset optional value"""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to timezone-aware UTC; a value without an offset is taken as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_url(value: Optional[str], allowed_schemes: Sequence[str] = ("http", "https")):
    """Validate URL shape: an allowed scheme and a network location"""
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in allowed_schemes:
        raise ValueError(
            f"URL scheme must be one of: {', '.join(allowed_schemes)}"
        )
    if not parsed.netloc:
        raise ValueError("URL must include a valid domain")
    return value


NonEmptyStr = Annotated[str, Field(min_length=1)]
ShortText = Annotated[str, Field(min_length=1, max_length=255)]
Proficiency = Annotated[int, Field(ge=0, le=100)]
SortOrder = Annotated[int, Field(ge=0)]
ReadTime = Annotated[int, Field(ge=1)]
CommentText = Annotated[str, Field(min_length=1, max_length=1000)]
ContactMessage = Annotated[str, Field(min_length=10, max_length=5000)]
OptionalUrl = Annotated[
    Optional[str], BeforeValidator(blank_to_none), AfterValidator(check_url)
]
UtcDateTime = Annotated[datetime, AfterValidator(to_utc)]
OptionalDate = Annotated[
    Optional[datetime], BeforeValidator(blank_to_none), AfterValidator(to_utc)
]


def _reject_null(cls, value):
    if value is None:
        raise ValueError("Field may not be null")
    return value


def partial_model(model: Type[BaseModel], name: Optional[str] = None) -> Type[BaseModel]:
    """
    Build the update schema for a create schema.

    Fields keep their constraints and validators but default to None, so
    `model_dump(exclude_unset=True)` yields only what the client sent.
    """
    fields = {}
    non_nullable = []
    for field_name, field in model.model_fields.items():
        fields[field_name] = (Optional[field.rebuild_annotation()], None)
        if type(None) not in get_args(field.annotation):
            non_nullable.append(field_name)

    validators = {}
    if non_nullable:
        validators["reject_null"] = field_validator(*non_nullable)(_reject_null)

    return create_model(
        name or f"{model.__name__.replace('Create', '')}Update",
        __base__=model,
        __validators__=validators,
        **fields,
    )


def violations_from_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten Pydantic/FastAPI error dicts into field violations"""
    violations = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        # Drop the request-part prefix FastAPI adds ("body", "query", ...)
        if loc and loc[0] in {"body", "query", "path", "header"}:
            loc = loc[1:]
        violations.append(
            {
                "field": ".".join(loc),
                "message": error.get("msg", "Invalid value"),
            }
        )
    return violations


def estimate_read_time(content: str) -> int:
    """Minutes to read `content` at 200 words per minute, at least 1"""
    words = [w for w in _WHITESPACE.split(content.strip()) if w]
    return max(1, math.ceil(len(words) / WORDS_PER_MINUTE))
