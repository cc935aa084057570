"""HTTP basic auth for the control and stats routes."""

import os
import secrets
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

basic_security = HTTPBasic()

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"


def expected_credentials():
    """Credentials come from API_USERNAME / API_PASSWORD, read per request."""
    return (os.environ.get("API_USERNAME", DEFAULT_USERNAME),
            os.environ.get("API_PASSWORD", DEFAULT_PASSWORD))


def verify_basic_auth(credentials: HTTPBasicCredentials = Depends(basic_security)):
    username, password = expected_credentials()
    correct_username = secrets.compare_digest(credentials.username.encode(), username.encode())
    correct_password = secrets.compare_digest(credentials.password.encode(), password.encode())
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
