"""
Credential gate - signup, login, bearer tokens and password reset codes.

Password hashing uses bcrypt; tokens are HS256 JWTs signed with python-jose.
"""
from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Tuple

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medreport import db
from medreport.errors import (
    DuplicateUser,
    IncorrectPassword,
    InvalidOtp,
    InvalidToken,
    MissingToken,
    OtpExpired,
    StorageError,
    UserNotFound,
    ValidationError,
)
from medreport.models import User

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72
OTP_DIGITS = 6


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_otp() -> str:
    """Six digit numeric code, never starting with zero."""
    low = 10 ** (OTP_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value)


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(f"Database error: {type(e).__name__}") from e


class CredentialGate:
    """User identity operations, configured explicitly by the app factory."""

    def __init__(
        self,
        secret_key: str,
        token_ttl: timedelta = timedelta(hours=24),
        otp_ttl: timedelta = timedelta(minutes=10),
        bcrypt_rounds: int = 10,
        algorithm: str = "HS256",
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.secret_key = secret_key
        self.token_ttl = token_ttl
        self.otp_ttl = otp_ttl
        self.bcrypt_rounds = bcrypt_rounds
        self.algorithm = algorithm

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CredentialGate":
        return cls(
            secret_key=config.get("JWT_SECRET_KEY") or config.get("SECRET_KEY"),
            token_ttl=timedelta(seconds=int(config.get("TOKEN_TTL_SECONDS", 86400))),
            otp_ttl=timedelta(seconds=int(config.get("RESET_OTP_TTL_SECONDS", 600))),
            bcrypt_rounds=int(config.get("BCRYPT_ROUNDS", 10)),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )

    # ============ Accounts ============

    def _lookup(self, name: str) -> Optional[User]:
        try:
            return User.query.filter_by(name=name).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f"Database error: {type(e).__name__}") from e

    def _find_user(self, name: str) -> User:
        user = self._lookup(name)
        if user is None:
            raise UserNotFound()
        return user

    def signup(self, name: Optional[str], password: Optional[str]) -> User:
        name = _require(name, "Name").strip()
        password = _require(password, "Password")
        _check_password_length(password)

        if self._lookup(name) is not None:
            raise DuplicateUser()

        user = User(name=name, password_hash=hash_password(password, self.bcrypt_rounds))
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as e:
            # Another signup took the name between the lookup and the insert
            db.session.rollback()
            raise DuplicateUser() from e
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f"Database error: {type(e).__name__}") from e
        return user

    def login(self, name: Optional[str], password: Optional[str]) -> Tuple[str, User]:
        name = _require(name, "Name").strip()
        password = _require(password, "Password")
        user = self._find_user(name)
        if not verify_password(password, user.password_hash):
            raise IncorrectPassword()
        return self.issue_token(user.id), user

    # ============ Tokens ============

    def issue_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.token_ttl,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> int:
        """Return the user id carried by a valid, unexpired token."""
        token = (token or "").strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()
        if not token:
            raise MissingToken()
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except JWTError as e:
            raise InvalidToken() from e
        sub = str(payload.get("sub") or "")
        if not sub.isdigit():
            raise InvalidToken()
        return int(sub)

    # ============ Password reset ============

    def forgot_password(self, name: Optional[str], now: Optional[datetime] = None) -> str:
        name = _require(name, "Name").strip()
        user = self._find_user(name)
        code = generate_otp()
        user.set_reset_otp(code, (now or datetime.now(timezone.utc)) + self.otp_ttl)
        _commit()
        return code

    def reset_password(
        self,
        name: Optional[str],
        otp: Optional[str],
        new_password: Optional[str],
        now: Optional[datetime] = None,
    ) -> User:
        name = _require(name, "Name").strip()
        otp = _require(otp, "OTP").strip()
        new_password = _require(new_password, "New password")
        _check_password_length(new_password)

        user = self._find_user(name)
        if not user.reset_otp or not hmac.compare_digest(user.reset_otp.encode("utf-8"), otp.encode("utf-8")):
            raise InvalidOtp()
        expiry = user.reset_otp_expiry
        if expiry is None or (now or datetime.now(timezone.utc)) > expiry:
            raise OtpExpired()

        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        user.clear_reset_otp()
        _commit()
        return user
