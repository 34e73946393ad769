"""Gemini Files API and generation client."""

import logging
from pathlib import Path

from google import genai
from google.genai import types
from pydantic import BaseModel

from podvault.utils.api_keys import resolve_api_key, validate_api_key

logger = logging.getLogger(__name__)


class RemoteFile(BaseModel):
    """Handle to a file uploaded to the Gemini Files API."""

    name: str
    uri: str | None = None
    mime_type: str | None = None
    state: str | None = None


def _state_name(state: object) -> str | None:
    """Normalize a FileState enum (or plain string) to its upper-case name."""
    if state is None:
        return None
    name = getattr(state, "name", None) or getattr(state, "value", None) or str(state)
    return str(name).split(".")[-1].upper()


class GeminiFileClient:
    """Thin async wrapper over google-genai for upload, poll, generate and delete.

    The underlying client is created lazily so a missing API key only fails
    the operations that need it.
    """

    def __init__(self, api_key: str | None = None, model_name: str = "gemini-2.5-flash") -> None:
        self.model_name = model_name
        self._api_key = api_key
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        """The google-genai client.

        Raises:
            APIKeyError: If no valid key is configured
        """
        if self._client is None:
            self._client = genai.Client(api_key=resolve_api_key(self._api_key))
        return self._client

    def update_api_key(self, api_key: str) -> None:
        """Validate a new key and rebuild the client with it."""
        self._api_key = validate_api_key(api_key, "api_key")
        self._client = genai.Client(api_key=self._api_key)
        logger.info("Gemini API key updated")

    async def upload(self, path: Path, mime_type: str, display_name: str) -> RemoteFile | None:
        """Upload a local file; returns None if the service gave no file name."""
        uploaded = await self.client.aio.files.upload(
            file=str(path),
            config=types.UploadFileConfig(mime_type=mime_type, display_name=display_name),
        )
        if not uploaded.name:
            return None
        return RemoteFile(
            name=uploaded.name,
            uri=uploaded.uri,
            mime_type=uploaded.mime_type or mime_type,
            state=_state_name(uploaded.state),
        )

    async def get_state(self, name: str) -> str | None:
        """Current processing state (PROCESSING, ACTIVE, FAILED, ...)."""
        remote = await self.client.aio.files.get(name=name)
        return _state_name(remote.state)

    async def delete(self, name: str) -> None:
        await self.client.aio.files.delete(name=name)

    async def generate(self, prompt: str, file_uri: str, mime_type: str) -> str:
        """Run the prompt against an uploaded file and return the response text."""
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=[prompt, types.Part.from_uri(file_uri=file_uri, mime_type=mime_type)],
        )
        return response.text or ""
