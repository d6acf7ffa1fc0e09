"""
Completion Client - Gemini adapter for the recommendation pipeline

Wraps the external text-completion service behind two calls:
- complete(prompt): single shot, returns the full reply text
- stream(prompt): returns a CompletionStream, a lazy, finite, non-restartable
  async iterator of text fragments that also accumulates them in a
  StreamBuffer

Failure model:
- Every failure (SDK error, timeout, missing API key, empty reply) is raised
  as UpstreamError. There are no retries here; "try again" is an explicit
  user action handled by the session.

Resource model:
- A CompletionStream owns the SDK's async iterator. Leaving
  `async with client.stream(prompt) as stream:` early (break, exception,
  cancellation) closes it.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Protocol

from google import genai
from google.genai import types

from vacaition.agents.recommendation.prompts import RECOMMENDATION_SYSTEM_PROMPT
from vacaition.config import settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The completion service errored, timed out, or returned nothing usable."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =============================================================================
# STREAMING PRIMITIVES
# =============================================================================

class StreamBuffer:
    """Accumulates the fragments of one in-flight streamed completion."""

    def __init__(self) -> None:
        self._fragments: List[str] = []

    def append(self, fragment: str) -> None:
        self._fragments.append(fragment)

    @property
    def text(self) -> str:
        return "".join(self._fragments)

    @property
    def fragment_count(self) -> int:
        return len(self._fragments)

    def __len__(self) -> int:
        return sum(len(fragment) for fragment in self._fragments)


class CompletionStream:
    """
    Fragments of one streamed completion.

    The upstream call is only opened when iteration starts. The stream can be
    iterated once; a second iteration raises RuntimeError.

    Usage:
        async with client.stream(prompt) as stream:
            async for fragment in stream:
                render(stream.buffer.text)
    """

    def __init__(self, open_source: Callable[[], Awaitable[AsyncIterator[str]]]):
        self.buffer = StreamBuffer()
        self._open_source = open_source
        self._source: Optional[AsyncIterator[str]] = None
        self._iterator = None
        self._closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterator is not None or self._closed:
            raise RuntimeError("CompletionStream can only be iterated once")
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncIterator[str]:
        try:
            try:
                self._source = await self._open_source()
                async for fragment in self._source:
                    if not fragment:
                        continue
                    self.buffer.append(fragment)
                    yield fragment
            except UpstreamError:
                raise
            except Exception as e:
                logger.error(f"Completion stream failed: {type(e).__name__}")
                raise UpstreamError(f"Completion service stream failed: {e}") from e

            if not self.buffer.text.strip():
                raise UpstreamError("Empty response from completion service")
            logger.debug(
                f"Completion stream finished with {self.buffer.fragment_count} fragments"
            )
        finally:
            await self._close_source()

    async def _close_source(self) -> None:
        source, self._source = self._source, None
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def aclose(self) -> None:
        """Release the upstream iterator; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._close_source()

    async def __aenter__(self) -> "CompletionStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class CompletionClient(Protocol):
    """Anything that can complete a prompt, in one shot or as a stream."""

    async def complete(self, prompt: str) -> str:
        ...

    def stream(self, prompt: str) -> CompletionStream:
        ...


# =============================================================================
# GEMINI IMPLEMENTATION
# =============================================================================

def _response_text(response) -> str:
    """
    Extract reply text from a Gemini response.

    Parts are read directly because response.text can be None even when
    parts carry text; thought parts are skipped.
    """
    texts = []
    if response.candidates:
        candidate = response.candidates[0]
        if candidate.content and candidate.content.parts:
            for part in candidate.content.parts:
                if getattr(part, "thought", False):
                    continue
                if getattr(part, "text", None):
                    texts.append(part.text)
    if texts:
        return "".join(texts)
    return response.text or ""


async def _chunk_texts(chunks) -> AsyncIterator[str]:
    """Map streamed Gemini chunks to their text, closing the SDK iterator on exit."""
    try:
        async for chunk in chunks:
            text = chunk.text
            if text:
                yield text
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()


class GeminiCompletionClient:
    """
    CompletionClient backed by the Google Gen AI SDK.

    The SDK client is created lazily on first use so importing the app never
    requires an API key; a missing key surfaces as UpstreamError instead.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        system_instruction: str = RECOMMENDATION_SYSTEM_PROMPT,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.temperature = (
            temperature if temperature is not None else settings.RECOMMENDATION_TEMPERATURE
        )
        self.timeout_seconds = timeout_seconds or settings.COMPLETION_TIMEOUT_SECONDS
        self.system_instruction = system_instruction
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is not None:
            return self._client

        if not self.api_key:
            logger.warning(
                "GOOGLE_API_KEY not configured. Recommendation service will not work. "
                "Please set GOOGLE_API_KEY in your .env file."
            )
            raise UpstreamError("Recommendation service is not configured.")

        try:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            raise UpstreamError("Recommendation service is unavailable.") from e

        logger.info(f"Gemini client initialized for model={self.model}")
        return self._client

    def _config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=self.system_instruction,
            temperature=self.temperature,
            max_output_tokens=settings.RECOMMENDATION_MAX_OUTPUT_TOKENS,
        )

    async def complete(self, prompt: str) -> str:
        """
        Send ``prompt`` and wait for the whole reply.

        Raises:
            UpstreamError: on SDK failure, timeout, or an empty reply
        """
        client = self._get_client()
        logger.info(f"Calling Gemini (single shot), prompt_length={len(prompt)}")

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=self._config(),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini call timed out after {self.timeout_seconds}s")
            raise UpstreamError("Recommendation service timed out.") from e
        except Exception as e:
            logger.error(f"Error calling Gemini API: {type(e).__name__}: {e}")
            raise UpstreamError(f"Error querying recommendation service: {e}") from e

        text = _response_text(response).strip()
        if not text:
            logger.error("Empty text in Gemini response")
            raise UpstreamError("Empty response from completion service")

        logger.info(f"Gemini reply received, length={len(text)}")
        return text

    def stream(self, prompt: str) -> CompletionStream:
        """Return a CompletionStream for ``prompt``; nothing is sent until iterated."""

        async def open_source() -> AsyncIterator[str]:
            client = self._get_client()
            logger.info(f"Calling Gemini (streaming), prompt_length={len(prompt)}")
            chunks = await client.aio.models.generate_content_stream(
                model=self.model,
                contents=prompt,
                config=self._config(),
            )
            return _chunk_texts(chunks)

        return CompletionStream(open_source)


# Shared default client (lazy SDK initialization)
_default_client: Optional[GeminiCompletionClient] = None


def get_completion_client() -> GeminiCompletionClient:
    """Return the process-wide Gemini completion client."""
    global _default_client

    if _default_client is None:
        _default_client = GeminiCompletionClient()
    return _default_client
