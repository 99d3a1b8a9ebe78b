# walrus/services/pitch_generator.py
from __future__ import annotations

import logging
import types
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write short, punchy startup pitches for a party game. "
    "Answer with a title on the first line and a two or three sentence pitch after it."
)


class GeneratedPitch(NamedTuple):
    ok: bool
    text: str = ""
    reason: str = ""


def build_messages(ask: str, required: Sequence[str], twist: Optional[str]) -> List[Dict[str, str]]:
    lines = [f"Ask: {ask}"]
    if required:
        lines.append("Must use: " + "; ".join(required))
    if twist:
        lines.append(f"Secret twist: {twist}")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def _extract_text(body: Any) -> Optional[str]:
    """Pull the first choice's message text out of a chat completion body."""
    try:
        text = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(text, str) or not text.strip():
        return None
    return text.strip()


class PitchGenerator:
    """
    Drafts a pitch through an OpenAI-compatible chat completions endpoint.
    Never raises for backend trouble; failures come back as ok=False.
    """
    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        model: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> PitchGenerator:
        return cls(
            api_url=settings.LLM_API_URL,
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT_SEC,
            client=client,
        )

    async def __aenter__(self) -> PitchGenerator:
        self._get_client()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def generate(self, ask: str, required: Sequence[str], twist: Optional[str] = None) -> GeneratedPitch:
        if not self._api_key:
            return GeneratedPitch(ok=False, reason="Pitch generation is not configured")

        payload = {
            "model": self._model,
            "messages": build_messages(ask, required, twist),
            "temperature": 0.9,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            response = await self._get_client().post(self._api_url, json=payload, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Pitch generation rejected: HTTP %s", e.response.status_code)
            if e.response.status_code == 429:
                return GeneratedPitch(ok=False, reason="Generation quota exhausted")
            return GeneratedPitch(ok=False, reason=f"Generation failed (HTTP {e.response.status_code})")
        except httpx.TimeoutException:
            logger.warning("Pitch generation timed out after %ss", self._timeout)
            return GeneratedPitch(ok=False, reason="Generation timed out")
        except httpx.RequestError as e:
            logger.warning("Pitch generation request failed: %s", e)
            return GeneratedPitch(ok=False, reason="Generation service unreachable")
        except ValueError:
            logger.warning("Pitch generation returned a non-JSON body")
            return GeneratedPitch(ok=False, reason="Malformed generation response")

        text = _extract_text(body)
        if text is None:
            logger.warning("Pitch generation returned no usable text")
            return GeneratedPitch(ok=False, reason="Malformed generation response")
        return GeneratedPitch(ok=True, text=text)
