"""Filter specification: parses dashboard query parameters into typed criteria.

Semantics shared by every entry point (dashboard, table, exports):
- categorical fields: OR across accepted values, compared case-insensitively,
  an empty set means the field is not filtered
- numeric fields: inclusive min/max bounds
- fields are ANDed together

Parsing is lenient. Bad numeric input drops the bound instead of failing
the request.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Mapping, Sequence, Union

from backend.analysis.errors import InvalidFilterValue
from backend.analysis.models import FLOAT_FIELDS, INT_FIELDS, TARGET_FIELD, normalize

logger = logging.getLogger(__name__)

ParamValue = Union[str, Sequence[str], None]

# Query parameter -> record field
CATEGORICAL_PARAMS = {
    "marital": "marital",
    "job": "job",
    "education": "education",
    "default": "default",
    "housing": "housing",
    "loan": "loan",
    "contact": "contact",
    "month": "month",
    "day": "day_of_week",
    "poutcome": "poutcome",
}

# First parameter with a non-blank value wins
SUBSCRIPTION_PARAMS = ["subscribed", "subscription", "y"]
SUBSCRIPTION_VALUES = {"yes", "no"}

# Range parameter prefix -> record field ({prefix}_min / {prefix}_max)
RANGE_PARAMS = {
    "age": "age",
    "duration": "duration",
    "campaign": "campaign",
    "pdays": "pdays",
    "previous": "previous",
    "empvarrate": "emp_var_rate",
    "conspriceidx": "cons_price_idx",
    "consconfidx": "cons_conf_idx",
    "euribor3m": "euribor3m",
    "nremployed": "nr_employed",
}

# ASCII digits and an optional "." only: no exponents, separators or NaN/inf
INT_PATTERN = re.compile(r"[+-]?[0-9]+")
DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")


class SubscriptionFilter(str, Enum):
    NONE = "none"
    ONLY_YES = "only_yes"
    ONLY_NO = "only_no"


@dataclass(frozen=True)
class NumericRange:
    """Inclusive bounds. None means unbounded on that side."""
    minimum: float | None = None
    maximum: float | None = None

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    @property
    def is_active(self) -> bool:
        return self.minimum is not None or self.maximum is not None


@dataclass(frozen=True)
class FilterSpecification:
    """Active filter criteria for one request."""
    categorical: dict[str, frozenset[str]] = field(default_factory=dict)
    ranges: dict[str, NumericRange] = field(default_factory=dict)

    @property
    def subscription_filter(self) -> SubscriptionFilter:
        values = self.categorical.get(TARGET_FIELD, frozenset())
        if values == {"yes"}:
            return SubscriptionFilter.ONLY_YES
        if values == {"no"}:
            return SubscriptionFilter.ONLY_NO
        return SubscriptionFilter.NONE

    @property
    def active_categorical(self) -> dict[str, frozenset[str]]:
        return {f: v for f, v in self.categorical.items() if v}

    @property
    def active_ranges(self) -> dict[str, NumericRange]:
        return {f: r for f, r in self.ranges.items() if r.is_active}

    def matches(self, record) -> bool:
        return matches(record, self)

    __call__ = matches

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, ParamValue],
        *,
        zero_min_is_unbounded: bool = True,
    ) -> "FilterSpecification":
        """Build a specification from query-string style parameters.

        Args:
            params: Parameter name -> string or list of strings.
            zero_min_is_unbounded: Treat a minimum of exactly 0 as "no lower
                bound". On by default to match existing dashboard links; it
                means a minimum of 0 cannot be expressed.

        Never raises for malformed input.
        """
        categorical: dict[str, frozenset[str]] = {}
        for param, record_field in CATEGORICAL_PARAMS.items():
            values = _clean_values(params.get(param))
            if values:
                categorical[record_field] = values

        for param in SUBSCRIPTION_PARAMS:
            values = _clean_values(params.get(param))
            if values:
                accepted = values & SUBSCRIPTION_VALUES
                if accepted:
                    categorical[TARGET_FIELD] = frozenset(accepted)
                break

        ranges: dict[str, NumericRange] = {}
        for prefix, record_field in RANGE_PARAMS.items():
            parser = _parse_int if record_field in INT_FIELDS else _parse_float
            minimum = _lenient(parser, f"{prefix}_min", params.get(f"{prefix}_min"))
            maximum = _lenient(parser, f"{prefix}_max", params.get(f"{prefix}_max"))
            if minimum == 0 and zero_min_is_unbounded:
                minimum = None
            bounds = NumericRange(minimum=minimum, maximum=maximum)
            if bounds.is_active:
                ranges[record_field] = bounds

        return cls(categorical=categorical, ranges=ranges)

    def to_query_params(self) -> dict[str, list[str]]:
        """Serialize the active criteria back to query parameters."""
        out: dict[str, list[str]] = {}
        for param, record_field in CATEGORICAL_PARAMS.items():
            values = self.categorical.get(record_field)
            if values:
                out[param] = sorted(values)
        if self.categorical.get(TARGET_FIELD):
            out["y"] = sorted(self.categorical[TARGET_FIELD])
        for prefix, record_field in RANGE_PARAMS.items():
            bounds = self.ranges.get(record_field)
            if bounds is None:
                continue
            if bounds.minimum is not None:
                out[f"{prefix}_min"] = [_format_number(bounds.minimum)]
            if bounds.maximum is not None:
                out[f"{prefix}_max"] = [_format_number(bounds.maximum)]
        return out


def matches(record, spec: FilterSpecification) -> bool:
    """True iff the record satisfies every active constraint in spec."""
    for record_field, values in spec.categorical.items():
        if values and normalize(getattr(record, record_field)) not in values:
            return False
    for record_field, bounds in spec.ranges.items():
        if not bounds.contains(getattr(record, record_field)):
            return False
    return True


# ── Parsing helpers ───────────────────────────────────────────

def _as_list(raw: ParamValue) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return [v for v in raw if v is not None]


def _clean_values(raw: ParamValue) -> frozenset[str]:
    # Requested values lose all surrounding whitespace; stored values only spaces
    cleaned = (str(v).strip().lower() for v in _as_list(raw))
    return frozenset(v for v in cleaned if v)


def _first_value(raw: ParamValue) -> str | None:
    for v in _as_list(raw):
        if str(v).strip():
            return str(v).strip()
    return None


def _parse_int(param: str, raw: ParamValue) -> int | None:
    text = _first_value(raw)
    if text is None:
        return None
    if not INT_PATTERN.fullmatch(text):
        raise InvalidFilterValue(param, raw)
    return int(text)


def _parse_float(param: str, raw: ParamValue) -> float | None:
    text = _first_value(raw)
    if text is None:
        return None
    if not DECIMAL_PATTERN.fullmatch(text):
        raise InvalidFilterValue(param, raw)
    return float(text)


def _lenient(parser, param: str, raw: ParamValue):
    try:
        return parser(param, raw)
    except InvalidFilterValue as exc:
        logger.debug("Ignoring filter bound: %s", exc)
        return None


def _format_number(value: float) -> str:
    if isinstance(value, int) or float(value).is_integer():
        return str(int(value))
    # Positional notation so the echoed value parses again (no "1e-05")
    return format(Decimal(repr(float(value))), "f")
