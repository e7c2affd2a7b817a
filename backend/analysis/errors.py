"""Exceptions raised by the filtering and aggregation engine."""


class InvalidFilterValue(ValueError):
    """A numeric filter parameter could not be parsed.

    Never reaches the caller: FilterSpecification.from_params catches it
    and treats the bound as absent.
    """

    def __init__(self, param: str, raw: object):
        super().__init__(f"Invalid value for {param!r}: {raw!r}")
        self.param = param
        self.raw = raw


class SourceUnavailable(RuntimeError):
    """The record source could not be queried (database down, file missing)."""


class AggregationCancelled(RuntimeError):
    """Aggregation stopped early because the request deadline passed or was cancelled."""
