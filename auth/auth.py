import secrets

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config.config import Settings, get_settings
from errors.errors import AuthenticationError

security = HTTPBasic(auto_error=False)


def get_current_staff(
        credentials: HTTPBasicCredentials | None = Depends(security),
        settings: Settings = Depends(get_settings),
) -> str:
    """
    Authenticate a staff member with HTTP Basic credentials.

    :param credentials: HTTPBasicCredentials object, None when the header is missing.
    :param settings: Settings holding STAFF_USERNAME and STAFF_PASSWORD.
    :return: username of the staff member.
    """

    if credentials is None:
        raise AuthenticationError("Staff credentials required")
    if not settings.staff_username or not settings.staff_password:
        raise AuthenticationError("Staff access is not configured")

    username_ok = secrets.compare_digest(credentials.username.encode(), settings.staff_username.encode())
    password_ok = secrets.compare_digest(credentials.password.encode(), settings.staff_password.encode())
    if not (username_ok and password_ok):
        raise AuthenticationError("Invalid credentials")
    return credentials.username
