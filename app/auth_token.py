from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.errors import AuthenticationError

load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
EXPIRY_MINUTES = int(os.getenv("JWT_EXPIRY_MINUTES", "60"))

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    uid: str
    email: Optional[str] = None
    role: str = "user"


def create_access_token(data: dict) -> str:
    """Issue a signed token; used by local tooling and tests."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=EXPIRY_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError(f"Authentication failed: {exc}") from exc

    uid = payload.get("uid") or payload.get("sub")
    if not uid:
        raise AuthenticationError("Invalid token")
    return Principal(uid=str(uid), email=payload.get("email"), role=payload.get("role") or "user")


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError(
            "No token provided. Please include a Bearer token in the Authorization header"
        )
    if not credentials.credentials:
        raise AuthenticationError("Invalid token format")
    return verify_token(credentials.credentials)
