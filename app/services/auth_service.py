"""Inscription et connexion des utilisateurs (bcrypt + JWT)."""
import asyncio

import asyncpg
import bcrypt
import jwt

from app.config import settings
from app.db.postgres_connector import PostgresConnector
from app.errors import AuthenticationError, DuplicateUserError
from app.logger import logger
from app.models import AuthResponse, LoginRequest, RegisterRequest, UserOut

INSERT_USER_SQL = "INSERT INTO users (email, password, name) VALUES ($1, $2, $3) RETURNING id"
SELECT_USER_SQL = "SELECT id, email, password, name FROM users WHERE email = $1"


class AuthService:
    """Émet un jeton signé après inscription ou connexion."""

    def __init__(
            self,
            db_connector: PostgresConnector,
            secret: str = settings.JWT_SECRET,
            algorithm: str = settings.JWT_ALGORITHM,
            rounds: int = settings.BCRYPT_ROUNDS):
        self.db = db_connector
        self.secret = secret
        self.algorithm = algorithm
        self.rounds = rounds

    def issue_token(self, user_id: int) -> str:
        return jwt.encode({"userId": user_id}, self.secret, algorithm=self.algorithm)

    async def register(self, request: RegisterRequest) -> AuthResponse:
        """
        Crée un utilisateur.

        Raises:
            DuplicateUserError: si l'email existe déjà
        """
        # hors de la boucle d'événements
        hashed = await asyncio.to_thread(
            bcrypt.hashpw, request.password.encode("utf-8"), bcrypt.gensalt(self.rounds)
        )
        try:
            user_id = await self.db.fetchval(
                INSERT_USER_SQL, request.email, hashed.decode("utf-8"), request.name
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateUserError("Email already exists") from e

        logger.info("User {user_id} registered.", user_id=user_id)
        return AuthResponse(
            token=self.issue_token(user_id),
            user=UserOut(id=user_id, email=request.email, name=request.name),
        )

    async def login(self, request: LoginRequest) -> AuthResponse:
        """
        Vérifie les identifiants.

        Raises:
            AuthenticationError: email inconnu ou mot de passe erroné
        """
        user = await self.db.fetchrow(SELECT_USER_SQL, request.email)
        if user is None:
            raise AuthenticationError("Invalid credentials")

        valid = await asyncio.to_thread(
            bcrypt.checkpw, request.password.encode("utf-8"), user["password"].encode("utf-8")
        )
        if not valid:
            raise AuthenticationError("Invalid credentials")

        return AuthResponse(
            token=self.issue_token(user["id"]),
            user=UserOut(id=user["id"], email=user["email"], name=user["name"]),
        )
