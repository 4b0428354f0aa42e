# hr_api/auth.py
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_api.database import get_db
from hr_api.errors import AuthenticationFailure, ConflictFailure, PermissionDenied
from hr_api.models import Role, User
from hr_api.schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class TokenService:
    def __init__(self, secret: str, expires_minutes: int = 60):
        self.secret = secret
        self.expires_minutes = expires_minutes

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "role": Role(user.role).value,
            "iat": now,
            "exp": now + timedelta(minutes=self.expires_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationFailure("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailure("Invalid token") from e


class AuthService:
    def __init__(self, session: AsyncSession, tokens: TokenService):
        self.session = session
        self.tokens = tokens

    async def find_by_email(self, email: str):
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> str:
        if await self.find_by_email(data.email):
            raise ConflictFailure("User with this email already exists")

        user = User(
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=Role.HR,  # Role default
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictFailure("User with this email already exists") from e

        logger.info("[REGISTER] user %s", user.id)
        return self.tokens.issue(user)

    async def login(self, data: LoginRequest) -> str:
        user = await self.find_by_email(data.email)
        # Pesan sama untuk email tidak dikenal dan password salah
        if user is None or not verify_password(data.password, user.password_hash):
            logger.warning("[LOGIN FAILED] %s", data.email)
            raise AuthenticationFailure("Invalid credentials")
        return self.tokens.issue(user)

    async def profile(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise AuthenticationFailure("User not found")
        return user


# --- DEPENDENCIES ---

def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
) -> AuthService:
    return AuthService(db, tokens)


async def current_user(
    authorization: str = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Validasi header 'Authorization: Bearer <token>' dan muat user-nya."""
    if not authorization:
        raise AuthenticationFailure("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationFailure("Missing bearer token")

    claims = auth.tokens.verify(token)
    return await auth.profile(claims["sub"])


def require_role(*roles: Role):
    async def checker(user: User = Depends(current_user)) -> User:
        if Role(user.role) not in roles:
            raise PermissionDenied()
        return user
    return checker
