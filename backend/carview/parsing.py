"""
Parsing of JSON replies from the quality and analysis stages.

Model replies are untrusted text. Instead of raising, parse_model returns a
ParseResult holding either the validated model or a ParseError; the caller
decides which default to substitute (see QUALITY_FALLBACK / ANALYSIS_FALLBACK
in schemas).
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def strip_code_fences(text: str | None) -> str:
    """Remove markdown code fence markers (```json / ```) and trim."""
    if not text:
        return ""
    return _FENCE_RE.sub("", text).strip()


@dataclass(frozen=True)
class ParseError:
    stage: str
    raw: str
    reason: str


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value


def parse_model(text: str | None, model_cls: type[T], stage: str) -> ParseResult[T]:
    """
    Strip code fences and load the reply as a JSON object into model_cls.

    Only a reply that is not a JSON object is an error; the models coerce
    odd field values (floats, lists, nulls) instead of rejecting them.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return ParseResult(error=ParseError(stage=stage, raw=text or "", reason="empty reply"))
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseResult(error=ParseError(stage=stage, raw=cleaned, reason=str(e)))
    if not isinstance(data, dict):
        return ParseResult(error=ParseError(stage=stage, raw=cleaned, reason="reply is not a JSON object"))
    try:
        return ParseResult(value=model_cls.model_validate(data))
    except ValidationError as e:
        return ParseResult(error=ParseError(stage=stage, raw=cleaned, reason=str(e)))
