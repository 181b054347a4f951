# matrix_mock/models/media.py
from tortoise import fields, models

class Media(models.Model):
    """
    Media registry entry: a content URI and the server namespace that owns it.
    Only the URI is kept; uploaded bytes are not stored.
    """
    id = fields.IntField(pk=True)
    media_id = fields.CharField(max_length=64, unique=True)
    server_id = fields.CharField(max_length=255, index=True)
    content_uri = fields.CharField(max_length=1024, unique=True)  # "mxc://<host>/<media_id>"
    content_type = fields.CharField(max_length=255, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "medias"
