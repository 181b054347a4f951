# matrix_mock/models/token.py
from tortoise import fields, models

class Token(models.Model):
    """
    Bearer session owned by a user.

    - server_id: bound on first login and then left alone; a refresh rebinds it
    - access_token: unique across the whole store, rotated on every login/refresh
    - refresh_token: optional, rotated only when asked for (login) or on refresh
    """
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="tokens", on_delete=fields.CASCADE)
    server_id = fields.CharField(max_length=255, null=True, index=True)
    access_token = fields.CharField(max_length=255, null=True, unique=True)
    refresh_token = fields.CharField(max_length=255, null=True, unique=True)

    class Meta:
        table = "tokens"
