"""Chat service answering questions about a user's Drive files.

The user's file metadata is rendered as CSV and injected into the system
prompt. Requests go to the OpenAI Responses API over plain httpx, without an
SDK. The response payload shape has varied across API versions, so the reply
is extracted by trying a fixed sequence of strategies.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Callable
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.config import settings
from cortex.core.exceptions import LlmError, ValidationError
from cortex.core.logging import get_logger
from cortex.db.models import DriveFile

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are Cortex, an intelligent assistant. You have access to the user's "
    "Google Drive file metadata. Use the provided context to answer questions."
)
NO_FILES_PROMPT = (
    "The user has no files synced yet. If they ask about their files, explain "
    "that there are no files to analyze and suggest syncing their Google Drive."
)
CSV_HEADER = ["Name", "Type", "Size", "Date", "Owner", "Starred"]

# Keys whose string values are identifiers or enums, never prose
NON_TEXT_KEYS = frozenset(
    {"id", "object", "status", "model", "role", "type", "created_at", "finish_reason"}
)


# ========== Reply extraction ==========


def _from_output_text(payload: dict[str, Any]) -> str | None:
    text = payload.get("output_text")
    return text if isinstance(text, str) and text.strip() else None


def _from_output_items(payload: dict[str, Any]) -> str | None:
    parts: list[str] = []
    for item in payload.get("output") or []:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("text"), str):
            parts.append(item["text"])
        for content in item.get("content") or []:
            if isinstance(content, dict) and isinstance(content.get("text"), str):
                parts.append(content["text"])
    text = "\n\n".join(p for p in parts if p.strip())
    return text or None


def _from_chat_choices(payload: dict[str, Any]) -> str | None:
    choices = payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    content = (choices[0].get("message") or {}).get("content")
    return content if isinstance(content, str) and content.strip() else None


def _from_refusal(payload: dict[str, Any]) -> str | None:
    refusal = payload.get("refusal")
    if not isinstance(refusal, str):
        for item in payload.get("output") or []:
            for content in (item.get("content") or []) if isinstance(item, dict) else []:
                if isinstance(content, dict) and isinstance(content.get("refusal"), str):
                    refusal = content["refusal"]
                    break
    if isinstance(refusal, str) and refusal.strip():
        return f"I can't help with that request: {refusal}"
    return None


def _longest_prose(value: Any, key: str | None = None) -> str | None:
    if key in NON_TEXT_KEYS:
        return None
    if isinstance(value, str):
        # Prose has spaces; identifiers and enum values don't
        return value if " " in value.strip() else None
    children: list[tuple[str | None, Any]] = []
    if isinstance(value, dict):
        children = list(value.items())
    elif isinstance(value, list):
        children = [(None, v) for v in value]
    candidates = [c for c in (_longest_prose(v, k) for k, v in children) if c]
    return max(candidates, key=len) if candidates else None


def _from_longest_string(payload: dict[str, Any]) -> str | None:
    return _longest_prose(payload)


# First strategy returning text wins
REPLY_STRATEGIES: tuple[tuple[str, Callable[[dict[str, Any]], str | None]], ...] = (
    ("output_text", _from_output_text),
    ("output_items", _from_output_items),
    ("chat_choices", _from_chat_choices),
    ("refusal", _from_refusal),
    ("longest_string", _from_longest_string),
)


def extract_reply(payload: dict[str, Any]) -> str:
    """Extract the reply text from an LLM response payload.

    Raises:
        LlmError: If no strategy finds any text.
    """
    for name, strategy in REPLY_STRATEGIES:
        reply = strategy(payload)
        if reply:
            logger.debug("llm_reply_extracted", strategy=name)
            return reply

    logger.warning("llm_reply_unparseable", keys=sorted(payload.keys()))
    raise LlmError("No response generated from AI model", status_code=500)


# ========== Context assembly ==========


def files_to_csv(files: list[DriveFile]) -> str:
    """Render file metadata as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for f in files:
        writer.writerow(
            [
                f.name,
                f.mime_type,
                str(f.size),
                f.modified_time.date().isoformat(),
                f.owner_name,
                "Yes" if f.is_starred else "No",
            ]
        )
    return buffer.getvalue()


def build_system_prompt(files: list[DriveFile]) -> str:
    """Build the system prompt with the user's files embedded."""
    if not files:
        return f"{SYSTEM_PROMPT}\n\n{NO_FILES_PROMPT}"
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"The user has {len(files)} files. Their metadata follows as CSV:\n\n"
        f"{files_to_csv(files)}"
    )


class ChatService:
    """Answers natural-language questions about a user's files."""

    # Class-level httpx client for connection pooling
    _http_client: httpx.AsyncClient | None = None

    def __init__(
        self,
        db: AsyncSession,
        http_client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
        model: str | None = None,
    ):
        """Initialize the chat service.

        Args:
            db: Async database session.
            http_client: Optional client, mainly for tests. Defaults to a
                shared pooled client.
            api_key: OpenAI API key override.
            model: Model name override.
        """
        self.db = db
        self._client = http_client
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model

    @classmethod
    def _get_http_client(cls) -> httpx.AsyncClient:
        """Get or create the shared httpx client."""
        if cls._http_client is None:
            cls._http_client = httpx.AsyncClient(
                base_url=settings.openai_base_url,
                timeout=httpx.Timeout(settings.openai_timeout),
                headers={"Content-Type": "application/json"},
            )
        return cls._http_client

    async def generate_reply(
        self,
        user_id: str,
        message: str | None,
        context: str | None = None,
    ) -> str:
        """Answer a question using the user's file metadata as context.

        Raises:
            ValidationError: If the message is missing or blank.
            LlmError: If the model is not configured, the API fails, or the
                response holds no usable text.
        """
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message is required and must be a non-empty string")

        if not self.api_key:
            raise LlmError(
                "OpenAI API key is not configured. Set CORTEX_OPENAI_API_KEY.",
                status_code=500,
            )

        files = await self._load_context_files(user_id)
        messages = [{"role": "system", "content": build_system_prompt(files)}]
        if context:
            messages.append({"role": "system", "content": f"Additional context: {context}"})
        messages.append({"role": "user", "content": text})

        payload = await self._call_model({"model": self.model, "input": messages})
        reply = extract_reply(payload)

        logger.info(
            "chat_reply_generated",
            user_id=user_id,
            context_files=len(files),
            reply_length=len(reply),
        )
        return reply

    async def _load_context_files(self, user_id: str) -> list[DriveFile]:
        """Most recently modified files, bounded to keep the prompt small."""
        result = await self.db.execute(
            select(DriveFile)
            .where(DriveFile.user_id == user_id)
            .order_by(DriveFile.modified_time.desc())
            .limit(settings.chat_max_context_files)
        )
        return list(result.scalars().all())

    async def _call_model(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST to the Responses API and map failures to LlmError."""
        client = self._client or self._get_http_client()

        try:
            response = await client.post(
                "responses",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.RequestError as e:
            logger.error("llm_request_failed", error=str(e), error_type=type(e).__name__)
            raise LlmError(
                "OpenAI service is unreachable. Please try again later.", status_code=503
            ) from e

        if response.status_code >= 400:
            raise self._map_error(response)

        return response.json()

    @staticmethod
    def _map_error(response: httpx.Response) -> LlmError:
        status = response.status_code
        try:
            detail = (response.json().get("error") or {}).get("message") or response.text
        except ValueError:
            detail = response.text

        logger.warning("llm_api_error", status_code=status, error=detail[:500])

        if status == 401:
            return LlmError("Invalid OpenAI API key", status_code=401)
        if status == 429:
            return LlmError(
                "OpenAI API rate limit exceeded. Please try again later.", status_code=429
            )
        if status >= 500:
            return LlmError("OpenAI service error. Please try again later.", status_code=503)
        return LlmError(f"OpenAI API error: {detail}", status_code=status)
