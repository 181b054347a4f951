from fastapi import APIRouter
from matrix_mock.api.v1.deps import ALL_METHODS
from matrix_mock.core.errors import Unrecognized

# Must be included last: it swallows every path the other routers did not match
router = APIRouter(prefix="/{serverID}/_matrix/client", tags=["fallback"])


@router.api_route("/r0", methods=ALL_METHODS)
@router.api_route("/r0/{rest:path}", methods=ALL_METHODS)
async def unrecognized(serverID: str, rest: str = ""):
    """Any client API path without a handler answers 404 M_UNRECOGNIZED."""
    raise Unrecognized()
