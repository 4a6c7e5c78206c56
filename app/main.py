"""Main module for the FastAPI application."""
import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import asyncpg
from fastapi import Depends, FastAPI, HTTPException, Query, status
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from .cache import cache_manager
from .config import settings
from .db.postgres_connector import PostgresConnector
from .db.schema import init_schema
from .errors import (
    AssistantUnavailableError,
    AuthenticationError,
    CatalogUnavailableError,
    DuplicateUserError,
    SearchValidationError,
)
from .logger import logger
from .models import (
    AuthResponse,
    ChatRequest,
    ChatResponse,
    LoginRequest,
    RegisterRequest,
    ReviewCreate,
    SearchRequest,
    SearchResponse,
    TempleDetail,
)
from .search.catalog_provider import CatalogProvider, PostgresCatalogProvider, sample_catalog
from .search.search_service import SearchService
from .services.auth_service import AuthService
from .services.chat_service import ChatService
from .services.temple_service import TempleService


# --- Initialisation des variables globales ---

db_connector: PostgresConnector = PostgresConnector(settings.DATABASE_URL)

catalog_provider: CatalogProvider = (
    sample_catalog() if settings.CATALOG_BACKEND == "memory"
    else PostgresCatalogProvider(db_connector)
)

search_service: SearchService = SearchService(
    catalog_provider=catalog_provider,
    cache=cache_manager if settings.CACHE_ENABLED else None,
)
# Alias `service` pour les tests qui patchent `main.service`
service = search_service

temple_service: TempleService = TempleService(catalog_provider, db_connector)
auth_service: AuthService = AuthService(db_connector)
chat_service: ChatService = ChatService(catalog_provider)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Handle FastAPI startup and shutdown events."""
    logger.info("Starting up Temple Finder API (catalog backend: {backend})...",
                backend=settings.CATALOG_BACKEND)

    try:
        await db_connector.connect()
        logger.info("PostgreSQL connection pool established successfully.")
        if settings.INIT_SCHEMA:
            await init_schema(db_connector, seed=settings.SEED_SAMPLE_DATA)
    except (ConnectionError, OSError, asyncpg.PostgresError) as e:
        logger.error("Failed to connect to PostgreSQL: {error}", error=e)

    if settings.CACHE_ENABLED:
        try:
            await cache_manager.ping()
            logger.info("Redis cache connected successfully.")
        except (RedisConnectionError, OSError) as e:
            logger.error("Failed to connect to Redis: {error}", error=e)

    yield

    logger.info("Shutting down Temple Finder API...")
    await db_connector.close()
    logger.info("PostgreSQL connection pool closed.")
    await cache_manager.close()
    logger.info("Redis connection closed.")

app = FastAPI(
    title="Temple Finder - Proximity Search Service",
    lifespan=lifespan
)


def get_service() -> SearchService:
    """Dépendance FastAPI pour obtenir l'instance du service de recherche."""
    return service


def get_temple_service() -> TempleService:
    return temple_service


def get_auth_service() -> AuthService:
    return auth_service


def get_chat_service() -> ChatService:
    return chat_service


async def _run_search(req: SearchRequest, svc: SearchService) -> SearchResponse:
    """Valide la requête, lance la recherche et traduit les erreurs en réponses HTTP."""
    try:
        criteria = req.to_criteria()
        return await svc.search(criteria)
    except SearchValidationError as e:
        logger.warning("Rejected search request: {error}", error=e)
        raise HTTPException(status_code=422,
                            detail={"error": str(e)}) from e
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail={"error": str(e)}) from e
    except Exception as e:
        logger.exception("Error processing search request")
        raise HTTPException(status_code=500, detail={"error": str(e)}) from e


@app.post("/search", response_model=SearchResponse)
async def search(req: SearchRequest, svc: SearchService = Depends(get_service)):
    """POST /search : recherche par ville, catégories et proximité."""
    pretty_request_body = json.dumps(req.model_dump(by_alias=True), indent=2, ensure_ascii=False)
    logger.info("Received request:\n{request_body}", request_body=pretty_request_body)
    return await _run_search(req, svc)


@app.get("/api/temples", response_model=List[Dict[str, Any]])
async def list_temples(
        city: Optional[str] = None,
        type: Optional[str] = Query(default=None, description="Comma-separated categories"),  # pylint: disable=redefined-builtin
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
        svc: SearchService = Depends(get_service)):
    """GET /api/temples : même recherche, réponse réduite à la liste des temples."""
    req = SearchRequest(
        city_pattern=city,
        categories=type.split(",") if type else None,
        lat=lat,
        lng=lng,
        radius_km=radius,
    )
    resp = await _run_search(req, svc)
    return resp.hits


@app.get("/api/temples/{temple_id}", response_model=TempleDetail)
async def get_temple(temple_id: int, svc: TempleService = Depends(get_temple_service)):
    """Fiche d'un temple avec avis et événements."""
    try:
        detail = await svc.get_detail(temple_id)
    except (CatalogUnavailableError, ConnectionError) as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail={"error": str(e)}) from e
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail={"error": "Temple not found"})
    return detail


@app.post("/api/reviews")
async def create_review(review: ReviewCreate, svc: TempleService = Depends(get_temple_service)):
    """Ajoute un avis."""
    try:
        await svc.add_review(review)
    except asyncpg.ForeignKeyViolationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail={"error": "Unknown temple or user"}) from e
    except ConnectionError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail={"error": str(e)}) from e
    return {"success": True}


@app.post("/api/auth/register", response_model=AuthResponse)
async def register(req: RegisterRequest, svc: AuthService = Depends(get_auth_service)):
    try:
        return await svc.register(req)
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail={"error": str(e)}) from e


@app.post("/api/auth/login", response_model=AuthResponse)
async def login(req: LoginRequest, svc: AuthService = Depends(get_auth_service)):
    try:
        return await svc.login(req)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"error": str(e)}) from e


@app.post("/api/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, svc: ChatService = Depends(get_chat_service)):
    """Assistant conversationnel sur le catalogue."""
    try:
        text = await svc.reply(req.message, req.history, req.location)
    except AssistantUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY,
                            detail={"error": str(e)}) from e
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail={"error": str(e)}) from e
    return ChatResponse(text=text)


@app.get("/")
def root():
    """Root endpoint to check API status."""
    return {"status": "ok", "message": "Temple Finder API is running"}


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Monitoring"])
async def health_check():
    """
    Health check endpoint.

    Checks connectivity to the database and Redis.
    Returns 200 OK if all services are reachable, otherwise 503 Service Unavailable.
    """
    services_status = {"database": "ok", "redis": "ok" if settings.CACHE_ENABLED else "disabled"}

    if settings.CACHE_ENABLED:
        try:
            await cache_manager.ping()
        except (RedisError, OSError):
            services_status["redis"] = "error"
            logger.error("Health check failed: Redis connection error.")

    try:
        await db_connector.fetchval("SELECT 1")
    except (ConnectionError, OSError, asyncpg.PostgresError):
        services_status["database"] = "error"
        logger.error("Health check failed: Database connection error.")

    if "error" in services_status.values():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=services_status)

    return services_status
