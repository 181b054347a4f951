from fastapi import APIRouter, Depends, Request
from matrix_mock.api.v1.deps import ALL_METHODS, require
from matrix_mock.api.v1.routers.auth import request_host
from matrix_mock.models.user import User
from matrix_mock.services import media

router = APIRouter(prefix="/{serverID}/_matrix/media/r0", tags=["media"])


@router.api_route("/upload", methods=ALL_METHODS)
async def upload(serverID: str, request: Request, _: User = Depends(require("POST"))):
    """
    Register an upload and hand back its content URI.

    The request body is read and discarded; only the URI and its owning
    server are recorded, which is enough for avatar URLs.

    Returns:
        dict: {"content_uri": "mxc://<host>/<media id>"}
    """
    await request.body()
    m = await media.register_media(serverID, request_host(request), request.headers.get("content-type"))
    return {"content_uri": m.content_uri}
