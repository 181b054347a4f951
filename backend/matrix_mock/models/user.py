# matrix_mock/models/user.py
"""
Database models for accounts.
A User is an identity inside one virtual server namespace; its Password holds
the digest of the user's password under the user's stored pattern.
"""
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Represents a Matrix account scoped to a single serverID. The same user_id
    may exist on several virtual servers as independent accounts.

    Relationships:
    - Has one Password (one-to-one, via related_name="credential")
    - Has many Tokens (one-to-many, via related_name="tokens")

    Security:
    - password_pattern only describes how to digest; no secret lives on this row
    """
    id = fields.IntField(pk=True)
    user_id = fields.CharField(max_length=255, index=True)  # Matrix user ID as the client sends it (e.g. "alice")
    server_id = fields.CharField(max_length=255, index=True)  # Owning virtual server namespace
    password_pattern = fields.CharField(max_length=255)  # "<scheme>$<rounds>$<hex salt>", see core.security
    display_name = fields.CharField(max_length=255, null=True)
    avatar_url = fields.CharField(max_length=1024, null=True)  # Usually an mxc:// URI from the media registry
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
        unique_together = (("user_id", "server_id"),)


class Password(models.Model):
    """
    Password digest bound to exactly one user.
    The digest is only ever compared, never reversed; plaintext is not stored.
    """
    id = fields.IntField(pk=True)
    user = fields.OneToOneField("models.User", related_name="credential", on_delete=fields.CASCADE)
    digest = fields.CharField(max_length=255, index=True)

    class Meta:
        table = "passwords"
