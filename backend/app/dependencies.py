"""Request-scoped dependencies shared by the routers."""

from fastapi import Request

from backend.analysis.filters import FilterSpecification
from backend.app.config import settings


def get_filter_spec(request: Request) -> FilterSpecification:
    """Parse the query string (repeatable keys) into a FilterSpecification."""
    params = {key: request.query_params.getlist(key) for key in request.query_params.keys()}
    return FilterSpecification.from_params(
        params, zero_min_is_unbounded=settings.zero_min_is_unbounded,
    )
