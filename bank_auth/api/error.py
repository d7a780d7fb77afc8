from fastapi import status

from bank_auth.libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Error codes that are the caller's fault, by HTTP status
CLIENT_ERROR_STATUS = {
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "SESSION_NOT_FOUND": status.HTTP_401_UNAUTHORIZED,
    "SESSION_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "MFA_NOT_VERIFIED": status.HTTP_401_UNAUTHORIZED,
    "REFRESH_TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "CODE_EXPIRED_OR_NOT_FOUND": status.HTTP_400_BAD_REQUEST,
    "CODE_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "INVALID_CODE_FORMAT": status.HTTP_400_BAD_REQUEST,
    "INVALID_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "MFA_NOT_PENDING": status.HTTP_400_BAD_REQUEST,
    "TOO_MANY_ATTEMPTS": status.HTTP_429_TOO_MANY_REQUESTS,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MFA_ALREADY_ENABLED": status.HTTP_409_CONFLICT,
    "MFA_NOT_ENABLED": status.HTTP_409_CONFLICT,
}


def raise_for_error(error: Error, overrides: dict = None):
    """Raise the ClientError or ServerError that matches an Error code"""
    status_code = (overrides or {}).get(error.code) or CLIENT_ERROR_STATUS.get(error.code)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)
