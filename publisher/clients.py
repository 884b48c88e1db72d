"""
Thin HTTP clients for the external services the stages call.

Network errors surface as ``TransientFault`` and unusable bodies as
``MalformedResponse``. A non-2xx answer from the song service is *not* an
exception: it comes back in ``SongReply.status`` so the caller can decline.
"""
import logging
from pathlib import Path
from typing import NamedTuple

import requests

from .exceptions import MalformedResponse, TransientFault

logger = logging.getLogger(__name__)


def _json(response: requests.Response):
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponse(f"Invalid JSON from {response.url}") from e


class _OpenAIClient:
    """Shared session and auth for the OpenAI compatible endpoints."""

    def __init__(self, base_url: str, api_key: str | None, model: str, *, timeout: float = 120,
                 session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def _post(self, path: str, body: dict) -> dict:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientFault(f"POST {path} failed: {e}") from e
        return _json(response)


class TextGenerator(_OpenAIClient):
    """Chat-completions endpoint."""

    def complete(self, messages: list[dict], temperature: float | None = None) -> str:
        body = {"model": self.model, "messages": messages}
        if temperature is not None:
            body["temperature"] = temperature
        data = self._post("/chat/completions", body)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponse("Completion response has no message content") from e
        if not content or not content.strip():
            raise MalformedResponse("Completion came back empty")
        return content.strip()


class ImageGenerator(_OpenAIClient):
    """Image generation endpoint."""

    def generate(self, prompt: str, size: str, count: int = 1) -> str:
        data = self._post("/images/generations", {
            "model": self.model,
            "prompt": prompt,
            "n": count,
            "size": size,
        })
        try:
            return data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponse("Image generation returned no image url") from e


class SongReply(NamedTuple):
    status: int
    clips: list

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class SongService:
    """suno-api compatible song generation service."""

    def __init__(self, base_url: str, *, timeout: float = 120, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _reply(self, response: requests.Response) -> SongReply:
        if not 200 <= response.status_code < 300:
            logger.warning("Song service answered %s for %s", response.status_code, response.url)
            return SongReply(response.status_code, [])
        clips = _json(response)
        if not isinstance(clips, list):
            raise MalformedResponse(f"Expected a list of clips from {response.url}")
        return SongReply(response.status_code, clips)

    def custom_generate(self, *, prompt: str, tags: str, title: str, model: str,
                        make_instrumental: bool = False, wait_audio: bool = False) -> SongReply:
        body = {
            "prompt": prompt,
            "tags": tags,
            "title": title,
            "make_instrumental": make_instrumental,
            "model": model,
            "wait_audio": wait_audio,
        }
        try:
            response = self.session.post(f"{self.base_url}/api/custom_generate", json=body,
                                         timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientFault(f"custom_generate failed: {e}") from e
        return self._reply(response)

    def get(self, song_id: str) -> SongReply:
        try:
            response = self.session.get(f"{self.base_url}/api/get", params={"ids": song_id},
                                        timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientFault(f"get {song_id} failed: {e}") from e
        return self._reply(response)


def download(url: str, dest: Path, *, timeout: float = 120, session: requests.Session | None = None,
             chunk_size: int = 1 << 16) -> Path:
    """Stream ``url`` into ``dest``."""
    http = session or requests
    try:
        with http.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        raise TransientFault(f"Download of {url} failed: {e}") from e
    return dest
