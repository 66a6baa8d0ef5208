# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed answer keys and grading rules.

A question's ``correct_answer`` column is untyped JSON. Before it is used
for grading (or accepted from an instructor) it is parsed into one of the
answer key variants below, selected by ``question_type``:

    mcq           integer option index
    true_false    0 (true) or 1 (false)
    multi_select  set of option indices
    numeric       {"value": v, "tolerance": t}
    text          {"accept": ["..", ..]}

A stored key that does not fit its variant raises InvalidAnswerKeyError.
A submitted answer of the wrong shape is simply graded incorrect.
"""

import math
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from qla_practice.domains.practice.exceptions import InvalidAnswerKeyError

QUESTION_TYPES = ("mcq", "true_false", "multi_select", "numeric", "text")
CHOICE_TYPES = ("mcq", "true_false", "multi_select")
TRUE_FALSE_OPTIONS = ["True", "False"]


def _as_index(value: Any) -> Optional[int]:
    """Coerce an option index, or return None if it is not one.

    Accepts ints, integral floats and digit strings. Booleans are rejected
    so that ``true`` never matches option 1.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _normalize_text(value: str) -> str:
    return value.strip().casefold()


class _AnswerKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    def grade(self, submitted: Any) -> bool:
        raise NotImplementedError

    def to_json(self) -> Any:
        raise NotImplementedError


class McqKey(_AnswerKey):
    """Single choice: the submitted index must equal the key."""

    type: Literal["mcq"] = "mcq"
    index: int = Field(ge=0)

    def grade(self, submitted: Any) -> bool:
        return _as_index(submitted) == self.index

    def to_json(self) -> int:
        return self.index


class TrueFalseKey(_AnswerKey):
    """True/false, stored as option index 0 (true) or 1 (false)."""

    type: Literal["true_false"] = "true_false"
    index: int = Field(ge=0, le=1)

    def grade(self, submitted: Any) -> bool:
        return _as_index(submitted) == self.index

    def to_json(self) -> int:
        return self.index


class MultiSelectKey(_AnswerKey):
    """Several choices: order and duplicates in the submission are ignored."""

    type: Literal["multi_select"] = "multi_select"
    indices: frozenset[int]

    @field_validator("indices")
    @classmethod
    def _non_negative(cls, value: frozenset[int]) -> frozenset[int]:
        if not value:
            raise ValueError("at least one option must be correct")
        if any(i < 0 for i in value):
            raise ValueError("option indices must be non-negative")
        return value

    def grade(self, submitted: Any) -> bool:
        if not isinstance(submitted, (list, tuple)):
            return False
        chosen = set()
        for item in submitted:
            index = _as_index(item)
            if index is None:
                return False
            chosen.add(index)
        return chosen == self.indices

    def to_json(self) -> list[int]:
        return sorted(self.indices)


class NumericKey(_AnswerKey):
    """Numeric answer within an absolute tolerance (inclusive)."""

    type: Literal["numeric"] = "numeric"
    value: float
    tolerance: Optional[float] = Field(default=None, ge=0)

    @field_validator("value")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("value must be finite")
        return value

    def grade(self, submitted: Any, default_tolerance: float = 0.0) -> bool:
        number = _as_number(submitted)
        if number is None:
            return False
        tolerance = self.tolerance if self.tolerance is not None else default_tolerance
        # Rounding absorbs float error so 10.4 stays within 0.4 of 10
        return round(abs(number - self.value), 9) <= tolerance

    def to_json(self) -> dict[str, float]:
        data = {"value": self.value}
        if self.tolerance is not None:
            data["tolerance"] = self.tolerance
        return data


class TextKey(_AnswerKey):
    """Free text matched after trimming and case folding."""

    type: Literal["text"] = "text"
    accept: tuple[str, ...]

    @field_validator("accept")
    @classmethod
    def _non_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(v for v in value if v.strip())
        if not cleaned:
            raise ValueError("at least one accepted answer is required")
        return cleaned

    def grade(self, submitted: Any) -> bool:
        if not isinstance(submitted, str):
            return False
        normalized = _normalize_text(submitted)
        return any(normalized == _normalize_text(answer) for answer in self.accept)

    def to_json(self) -> dict[str, list[str]]:
        return {"accept": list(self.accept)}


AnswerKey = Annotated[
    Union[McqKey, TrueFalseKey, MultiSelectKey, NumericKey, TextKey],
    Field(discriminator="type"),
]


def _key_payload(question_type: str, raw: Any) -> dict[str, Any]:
    """Reshape stored JSON into the fields of the matching variant."""
    if question_type in ("mcq", "true_false"):
        index = _as_index(raw)
        if index is None:
            raise InvalidAnswerKeyError(question_type, "expected an option index")
        return {"index": index}

    if question_type == "multi_select":
        if not isinstance(raw, (list, tuple)):
            raise InvalidAnswerKeyError(question_type, "expected a list of option indices")
        indices = [_as_index(item) for item in raw]
        if any(index is None for index in indices):
            raise InvalidAnswerKeyError(question_type, "expected a list of option indices")
        return {"indices": frozenset(indices)}

    if question_type == "numeric":
        if isinstance(raw, dict):
            value = _as_number(raw.get("value"))
            tolerance = raw.get("tolerance")
        else:
            value, tolerance = _as_number(raw), None
        if value is None:
            raise InvalidAnswerKeyError(question_type, "expected a numeric value")
        if tolerance is not None and _as_number(tolerance) is None:
            raise InvalidAnswerKeyError(question_type, "tolerance must be a number")
        return {"value": value, "tolerance": _as_number(tolerance)}

    if question_type == "text":
        if isinstance(raw, dict):
            accept = raw.get("accept", raw.get("accepted"))
            if accept is None and "value" in raw:
                accept = [raw["value"]]
        elif isinstance(raw, str):
            accept = [raw]
        else:
            accept = raw
        if not isinstance(accept, (list, tuple)) or not all(isinstance(a, str) for a in accept):
            raise InvalidAnswerKeyError(question_type, "expected a list of accepted strings")
        return {"accept": tuple(accept)}

    raise InvalidAnswerKeyError(question_type, "unsupported question type")


_VARIANTS: dict[str, type[_AnswerKey]] = {
    "mcq": McqKey,
    "true_false": TrueFalseKey,
    "multi_select": MultiSelectKey,
    "numeric": NumericKey,
    "text": TextKey,
}


def parse_answer_key(question_type: str, raw: Any) -> AnswerKey:
    """Validate stored answer JSON into its typed variant.

    Args:
        question_type: One of QUESTION_TYPES.
        raw: The stored ``correct_answer`` value.

    Returns:
        The typed answer key.

    Raises:
        InvalidAnswerKeyError: If the type is unknown or the key malformed.
    """
    payload = _key_payload(question_type, raw)
    try:
        return _VARIANTS[question_type](**payload)
    except ValueError as e:
        raise InvalidAnswerKeyError(question_type, str(e)) from e


def grade_answer(key: AnswerKey, submitted: Any, default_tolerance: float = 0.0) -> bool:
    """Decide whether a submission is correct for the given key."""
    if isinstance(key, NumericKey):
        return key.grade(submitted, default_tolerance=default_tolerance)
    return key.grade(submitted)


def validate_question_payload(
    question_type: str,
    question_data: Optional[dict[str, Any]],
    correct_answer: Any,
) -> tuple[dict[str, Any], AnswerKey]:
    """Validate an authored question's options against its answer key.

    Choice questions need an ``options`` list and every keyed index must
    point into it. True/false questions get the standard two options when
    none are given.

    Returns:
        Tuple of (normalized question_data, parsed answer key).

    Raises:
        InvalidAnswerKeyError: If the options and key are inconsistent.
    """
    data = dict(question_data or {})
    key = parse_answer_key(question_type, correct_answer)

    if question_type not in CHOICE_TYPES:
        return data, key

    if question_type == "true_false":
        data.setdefault("options", list(TRUE_FALSE_OPTIONS))

    options = data.get("options")
    if not isinstance(options, list) or len(options) < 2:
        raise InvalidAnswerKeyError(question_type, "at least two options are required")

    keyed = key.indices if isinstance(key, MultiSelectKey) else {key.index}
    if max(keyed) >= len(options):
        raise InvalidAnswerKeyError(question_type, "answer index is out of range")
    return data, key
