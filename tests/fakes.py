"""In-memory fakes for the network-facing collaborators."""

import asyncio
from pathlib import Path

from podvault.summary.gemini import RemoteFile


class FakeDownloader:
    """Writes fixed bytes instead of touching the network."""

    def __init__(self, content: bytes = b"ID3 fake audio", error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    async def download(self, url: str, dest: Path) -> Path:
        self.calls.append((url, dest))
        if self.error is not None:
            raise self.error
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.content)
        return dest


class FakeGeminiClient:
    """In-memory stand-in for GeminiFileClient."""

    def __init__(
        self,
        states: list[str] | None = None,
        text: str = "# Summary\n\nGreat episode.",
    ):
        self.states = list(states or ["ACTIVE"])
        self.text = text
        self.upload_error: Exception | None = None
        self.generate_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.uploaded: list[Path] = []
        self.deleted: list[str] = []
        self.prompts: list[str] = []
        self.api_key: str | None = None
        self.state_delay = 0.0

    def update_api_key(self, api_key: str) -> None:
        self.api_key = api_key

    async def upload(self, path: Path, mime_type: str, display_name: str) -> RemoteFile | None:
        if self.upload_error is not None:
            raise self.upload_error
        self.uploaded.append(path)
        return RemoteFile(
            name=f"files/{len(self.uploaded)}",
            uri=f"https://generativelanguage.googleapis.com/v1beta/files/{len(self.uploaded)}",
            mime_type=mime_type,
            state="PROCESSING",
        )

    async def get_state(self, name: str) -> str | None:
        if self.state_delay:
            await asyncio.sleep(self.state_delay)
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0]

    async def delete(self, name: str) -> None:
        self.deleted.append(name)
        if self.delete_error is not None:
            raise self.delete_error

    async def generate(self, prompt: str, file_uri: str, mime_type: str) -> str:
        self.prompts.append(prompt)
        if self.generate_error is not None:
            raise self.generate_error
        return self.text
