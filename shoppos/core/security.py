from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from shoppos.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(app_settings: Settings, user_id: int, role: str) -> str:
    """Sign a bearer token for a POS user with the app's key, issuer and lifetime."""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=app_settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iss": app_settings.issuer,
        "exp": expires_at,
    }
    return jwt.encode(claims, app_settings.secret_key, algorithm=app_settings.algorithm)


def decode_access_token(app_settings: Settings, token: str) -> dict:
    """Verify signature, issuer and expiry; raises ``JWTError`` on any mismatch."""
    return jwt.decode(
        token,
        app_settings.secret_key,
        algorithms=[app_settings.algorithm],
        issuer=app_settings.issuer,
    )
