"""Bearer-token authentication.

Accounts, passwords and sign-in live with the identity collaborator; the
storefront only needs to know who is calling. Tokens are HS256 JWTs
carrying ``userId``, ``email`` and ``role`` claims.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from ordering.exceptions import Unauthorized

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"

TOKEN_TTL = timedelta(days=7)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    role: str = CUSTOMER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class Authenticator(ABC):
    """Resolves a bearer token into an ``Identity``."""

    @abstractmethod
    def authenticate(self, token: str) -> Identity:
        """Return the caller's identity, raising ``Unauthorized`` for a bad token."""
        ...


class JWTAuthenticator(Authenticator):
    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = TOKEN_TTL) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_domain(cls, domain) -> "JWTAuthenticator":
        return cls(
            secret=domain.JWT_SECRET,
            algorithm=getattr(domain, "JWT_ALGORITHM", None) or "HS256",
        )

    def issue_token(self, identity: Identity) -> str:
        claims = {
            "userId": identity.user_id,
            "email": identity.email,
            "role": identity.role,
            "exp": datetime.now(UTC) + self.ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def authenticate(self, token: str) -> Identity:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise Unauthorized("Invalid or expired token") from exc

        user_id = claims.get("userId")
        if not user_id:
            raise Unauthorized("Invalid or expired token")

        return Identity(
            user_id=str(user_id),
            email=claims.get("email", ""),
            role=claims.get("role", CUSTOMER_ROLE),
        )
