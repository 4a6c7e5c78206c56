"""Assistant conversationnel appuyé sur le catalogue (Gemini)."""
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.config import settings
from app.errors import AssistantUnavailableError
from app.logger import logger
from app.models import CatalogEntry, ChatTurn
from app.scoring.distance import GeoPoint, haversine_km
from app.search.catalog_provider import CatalogProvider


class ChatService:
    """Construit le contexte du catalogue et interroge le modèle génératif."""

    def __init__(
            self,
            catalog_provider: CatalogProvider,
            client: Optional[genai.Client] = None,
            model: str = settings.GEMINI_MODEL,
            system_instruction: str = settings.CHAT_SYSTEM_INSTRUCTION):
        self.catalog_provider = catalog_provider
        self._client = client
        self.model = model
        self.system_instruction = system_instruction

    @property
    def client(self) -> genai.Client:
        """Client Gemini créé à la première utilisation."""
        if self._client is None:
            if not settings.GEMINI_API_KEY:
                raise AssistantUnavailableError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=settings.GEMINI_API_KEY)
        return self._client

    @staticmethod
    def build_context(entries: List[CatalogEntry], location: Optional[GeoPoint] = None) -> str:
        """Une ligne par temple ; la distance est ajoutée si la position est connue."""
        lines = []
        for entry in entries:
            line = (
                f"{entry.name} ({entry.category}) in {entry.city}: {entry.address}. "
                f"Hours: {entry.opening_hours}"
            )
            if location is not None and entry.location is not None:
                line += f". Distance: {haversine_km(location, entry.location):.1f} km"
            lines.append(line)
        return "\n".join(lines)

    def build_prompt(self, message: str, context: str, location: Optional[Dict[str, Any]]) -> str:
        return (
            "You are a helpful Temple Finder Assistant.\n"
            f"Current User Location: {location if location else 'Unknown'}.\n"
            "Available Temples Data:\n"
            f"{context}\n\n"
            f"User Message: {message}"
        )

    async def reply(
            self,
            message: str,
            history: Optional[List[ChatTurn]] = None,
            location: Optional[Dict[str, Any]] = None) -> str:
        """
        Répond au message de l'utilisateur.

        Raises:
            AssistantUnavailableError: clé absente ou échec de l'appel Gemini
            CatalogUnavailableError: catalogue indisponible
        """
        entries = await self.catalog_provider.get_snapshot()
        point = GeoPoint.from_dict(location) if location else None
        prompt = self.build_prompt(message, self.build_context(entries, point), location)

        contents = [
            {"role": "model" if turn.role in ("model", "assistant") else "user",
             "parts": [{"text": turn.text}]}
            for turn in history or []
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(system_instruction=self.system_instruction),
            )
        except genai_errors.APIError as e:
            logger.error("Gemini call failed: {error}", error=e)
            raise AssistantUnavailableError("AI service error") from e

        return response.text or ""
