"""
Media URI registry. Records which server owns a content URI; the bytes
themselves are not kept.
"""
import logging
import uuid
from typing import Optional

from matrix_mock.models import Media

logger = logging.getLogger("uvicorn.error")


def content_uri(host: str, media_id: str) -> str:
    return f"mxc://{host}/{media_id}"


async def register_media(server_id: str, host: str, content_type: Optional[str] = None) -> Media:
    media_id = uuid.uuid4().hex
    media = await Media.create(
        media_id=media_id,
        server_id=server_id,
        content_uri=content_uri(host, media_id),
        content_type=content_type,
    )
    logger.info("[media] registered %s on %s", media.content_uri, server_id)
    return media


async def lookup_media(server_id: str, uri: str) -> Optional[Media]:
    return await Media.get_or_none(server_id=server_id, content_uri=uri)
