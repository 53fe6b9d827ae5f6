"""Callable endpoints: diagnosticPing and searchProducts.

Both follow the callable convention: the request body is
`{"data": ...}`, a success is `{"result": ...}` and a failure is
`{"error": {"status", "message", "details"}}`.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from ...errors import InternalError, InvalidArgumentError, NicheScoutError
from ...keepa.service import SearchService
from ...models import SearchRequest
from ..auth import UserContext, get_current_user
from ..deps import get_search_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_callable_data(request: Request) -> Any:
    """Return the `data` member of a callable request body."""
    raw = await request.body()
    if not raw:
        return None
    try:
        body = await request.json()
    except ValueError:
        raise InvalidArgumentError("Request body must be JSON.")
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be an object.")
    return body.get("data")


def parse_search_request(data: Any) -> SearchRequest:
    """Validate searchProducts input, mapping failures to INVALID_ARGUMENT."""
    if not isinstance(data, dict):
        data = {}
    keyword = data.get("keyword")
    if not keyword or not isinstance(keyword, str):
        raise InvalidArgumentError("Keyword is required.")
    try:
        return SearchRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidArgumentError(
            "Invalid search request.",
            details={"errors": e.errors(include_url=False, include_context=False)},
        )


@router.post("/diagnosticPing")
async def diagnostic_ping(
    user: UserContext = Depends(get_current_user),
    service: SearchService = Depends(get_search_service),
):
    """
    Check the Keepa key and token quota.

    Returns the Keepa token status body verbatim (tokensLeft, refillIn, ...).
    """
    try:
        status = await service.ping()
    except NicheScoutError:
        raise
    except Exception as e:
        logger.exception("diagnosticPing failed")
        raise InternalError(str(e) or "Unexpected error")
    return {"result": status}


@router.post("/searchProducts")
async def search_products(
    request: Request,
    user: UserContext = Depends(get_current_user),
    service: SearchService = Depends(get_search_service),
):
    """
    Search Keepa for a keyword.

    - keyword: required search term
    - minPrice / maxPrice: optional bounds in cents
    - maxResults: maximum number of results (default 20)
    """
    search = parse_search_request(await read_callable_data(request))

    try:
        products = await service.search(search)
    except NicheScoutError:
        raise
    except Exception as e:
        logger.exception("searchProducts failed for %s", user.uid)
        raise InternalError(str(e) or "Unexpected error")

    return {"result": [p.model_dump(by_alias=True, mode="json") for p in products]}
