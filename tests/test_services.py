# tests/test_services.py
import asyncpg
import bcrypt
import jwt
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from google.genai import errors as genai_errors

from app.db.schema import SAMPLE_TEMPLES, init_schema
from app.errors import AssistantUnavailableError, AuthenticationError, DuplicateUserError
from app.models import ChatTurn, LoginRequest, RegisterRequest, ReviewCreate
from app.search.catalog_provider import InMemoryCatalogProvider
from app.services.auth_service import AuthService
from app.services.chat_service import ChatService
from app.services.temple_service import TempleService

SECRET = "test-secret"


@pytest.fixture
def auth_service(mock_db_connector):
    return AuthService(mock_db_connector, secret=SECRET, rounds=4)


@pytest.mark.asyncio
class TestAuthService:

    async def test_register_hashes_password_and_issues_token(self, auth_service, mock_db_connector):
        mock_db_connector.fetchval.return_value = 7

        resp = await auth_service.register(RegisterRequest(email="a@b.c", password="pw", name="Asha"))

        assert resp.user.id == 7
        assert jwt.decode(resp.token, SECRET, algorithms=["HS256"])["userId"] == 7
        _, email, stored_hash, name = mock_db_connector.fetchval.call_args.args
        assert (email, name) == ("a@b.c", "Asha")
        assert stored_hash != "pw"
        assert bcrypt.checkpw(b"pw", stored_hash.encode("utf-8"))

    async def test_register_duplicate_email(self, auth_service, mock_db_connector):
        mock_db_connector.fetchval.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(DuplicateUserError):
            await auth_service.register(RegisterRequest(email="a@b.c", password="pw", name="A"))

    async def test_login_success(self, auth_service, mock_db_connector):
        hashed = bcrypt.hashpw(b"secret", bcrypt.gensalt(4)).decode("utf-8")
        mock_db_connector.fetchrow.return_value = {
            "id": 3, "email": "a@b.c", "password": hashed, "name": "Asha"
        }

        resp = await auth_service.login(LoginRequest(email="a@b.c", password="secret"))

        assert resp.user.email == "a@b.c"
        assert jwt.decode(resp.token, SECRET, algorithms=["HS256"])["userId"] == 3

    async def test_login_wrong_password(self, auth_service, mock_db_connector):
        hashed = bcrypt.hashpw(b"secret", bcrypt.gensalt(4)).decode("utf-8")
        mock_db_connector.fetchrow.return_value = {
            "id": 3, "email": "a@b.c", "password": hashed, "name": "Asha"
        }

        with pytest.raises(AuthenticationError):
            await auth_service.login(LoginRequest(email="a@b.c", password="nope"))

    async def test_login_unknown_email(self, auth_service):
        with pytest.raises(AuthenticationError):
            await auth_service.login(LoginRequest(email="x@y.z", password="pw"))


@pytest.mark.asyncio
class TestTempleService:

    async def test_detail_includes_reviews_and_events(self, sample_provider, mock_db_connector):
        mock_db_connector.execute_query.side_effect = [
            [{"id": 1, "temple_id": 4, "user_id": 2, "rating": 5, "comment": "Calm", "user_name": "Ravi"}],
            [{"id": 9, "temple_id": 4, "title": "Mahavir Jayanti", "description": None, "event_date": None}],
        ]
        service = TempleService(sample_provider, mock_db_connector)

        detail = await service.get_detail(4)

        assert detail.name == "Katraj Jain Temple"
        assert detail.reviews[0].user_name == "Ravi"
        assert detail.events[0].title == "Mahavir Jayanti"
        assert mock_db_connector.execute_query.await_count == 2

    async def test_detail_of_unknown_temple(self, sample_provider, mock_db_connector):
        service = TempleService(sample_provider, mock_db_connector)

        assert await service.get_detail(404) is None
        mock_db_connector.execute_query.assert_not_called()

    async def test_detail_with_non_numeric_id_skips_database(self, mock_db_connector):
        provider = InMemoryCatalogProvider([{"id": "osho-park", "name": "Osho Teerth Park"}])
        service = TempleService(provider, mock_db_connector)

        detail = await service.get_detail("osho-park")

        assert detail.name == "Osho Teerth Park"
        assert detail.reviews == []
        assert detail.events == []
        mock_db_connector.execute_query.assert_not_called()

    async def test_add_review(self, sample_provider, mock_db_connector):
        service = TempleService(sample_provider, mock_db_connector)

        await service.add_review(ReviewCreate(temple_id=1, user_id=2, rating=4, comment="Nice"))

        assert mock_db_connector.execute.call_args.args[1:] == (1, 2, 4, "Nice")


def make_chat_client(text="Visit Katraj Jain Temple."):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=text))
    return client


@pytest.mark.asyncio
class TestChatService:

    async def test_reply_sends_catalog_context_and_history(self, sample_provider):
        client = make_chat_client()
        service = ChatService(sample_provider, client=client, model="test-model")

        text = await service.reply(
            "Any Jain temple?",
            history=[ChatTurn(role="user", text="Hi"), ChatTurn(role="assistant", text="Hello!")],
        )

        assert text == "Visit Katraj Jain Temple."
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        contents = kwargs["contents"]
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        prompt = contents[-1]["parts"][0]["text"]
        assert "Katraj Jain Temple (Jain) in Pune" in prompt
        assert "Current User Location: Unknown" in prompt
        assert "Any Jain temple?" in prompt

    async def test_context_includes_distance_when_location_known(self, sample_provider):
        client = make_chat_client()
        service = ChatService(sample_provider, client=client)

        await service.reply("Nearest?", location={"lat": 18.5204, "lng": 73.8567})

        prompt = client.aio.models.generate_content.call_args.kwargs["contents"][-1]["parts"][0]["text"]
        assert "Dagadusheth Halwai Ganapati Temple (Hindu) in Pune" in prompt
        assert "Distance: 0.5 km" in prompt

    async def test_api_error_is_wrapped(self, sample_provider):
        client = make_chat_client()
        client.aio.models.generate_content.side_effect = genai_errors.APIError(
            500, {"error": {"message": "boom", "status": "INTERNAL"}}
        )
        service = ChatService(sample_provider, client=client)

        with pytest.raises(AssistantUnavailableError):
            await service.reply("hello")

    async def test_missing_api_key(self, sample_provider):
        service = ChatService(sample_provider)

        with patch("app.services.chat_service.settings") as mock_settings:
            mock_settings.GEMINI_API_KEY = ""
            with pytest.raises(AssistantUnavailableError):
                await service.reply("hello")


@pytest.mark.asyncio
async def test_init_schema_seeds_empty_catalog(mock_db_connector):
    mock_db_connector.fetchval.return_value = 0
    mock_db_connector.executemany = AsyncMock()

    await init_schema(mock_db_connector)

    mock_db_connector.execute.assert_awaited_once()
    args = mock_db_connector.executemany.call_args.args[1]
    assert len(args) == len(SAMPLE_TEMPLES)
    assert args[3][:2] == ("Katraj Jain Temple", "Jain")


@pytest.mark.asyncio
async def test_init_schema_does_not_reseed(mock_db_connector):
    mock_db_connector.fetchval.return_value = 5
    mock_db_connector.executemany = AsyncMock()

    await init_schema(mock_db_connector)

    mock_db_connector.executemany.assert_not_called()
