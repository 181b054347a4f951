# matrix_mock/core/errors.py
"""
Matrix error taxonomy.

Every failure a client can observe is one of these exceptions. Services raise
them at their public boundary; the handlers registered in ``matrix_mock.main``
render them as the standard ``{"errcode": ..., "error": ...}`` envelope.
"""
from fastapi import status


class MatrixError(Exception):
    """Base class: an HTTP status plus a Matrix ``errcode`` and message."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    errcode: str = "M_UNKNOWN"
    message: str = "Unknown error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"errcode": self.errcode, "error": self.message}


class InvalidParam(MatrixError):
    errcode = "M_INVALID_PARAM"
    message = "Bad parameter"

    @classmethod
    def for_field(cls, field: str) -> "InvalidParam":
        return cls(f"Bad parameter: {field}")


class NotJson(MatrixError):
    errcode = "M_NOT_JSON"
    message = "Content not JSON."


class Forbidden(MatrixError):
    status_code = status.HTTP_403_FORBIDDEN
    errcode = "M_FORBIDDEN"
    message = "Forbidden"


class UnknownLoginType(MatrixError):
    status_code = status.HTTP_403_FORBIDDEN
    errcode = "M_UNKNOWN"
    message = "Bad login type."


class Unauthorized(MatrixError):
    status_code = status.HTTP_401_UNAUTHORIZED
    errcode = "M_UNKNOWN_TOKEN"
    message = "Unrecognised access token."


class MissingToken(Unauthorized):
    errcode = "M_MISSING_TOKEN"
    message = "Missing access token."


class UnknownToken(Unauthorized):
    pass


class MethodNotAllowed(MatrixError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    errcode = "M_UNRECOGNIZED"
    message = "Method not allowed"


class NotFound(MatrixError):
    status_code = status.HTTP_404_NOT_FOUND
    errcode = "M_NOT_FOUND"
    message = "Not found"


class Unrecognized(MatrixError):
    status_code = status.HTTP_404_NOT_FOUND
    errcode = "M_UNRECOGNIZED"
    message = "Unrecognized request"


class AliasInUse(MatrixError):
    errcode = "M_ROOM_IN_USE"
    message = "Room alias already taken"


class NotMember(MatrixError):
    status_code = status.HTTP_403_FORBIDDEN
    errcode = "M_NOT_MEMBER"
    message = "The target user_id is not a room member."


class Conflict(MatrixError):
    status_code = status.HTTP_409_CONFLICT
    errcode = "M_UNKNOWN"
    message = "Conflicting write, retry the request"


class NoSuchSession(MatrixError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    errcode = "M_UNKNOWN"
    message = "No session provisioned for this user"
