"""
Tests for the completion client layer.

Gemini is never called: genai.Client is patched and responses are plain
namespaces shaped like SDK objects.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vacaition.services.completion_client import (
    CompletionStream,
    GeminiCompletionClient,
    StreamBuffer,
    UpstreamError,
    get_completion_client,
)


def gemini_response(*texts, thought_texts=()):
    parts = [SimpleNamespace(text=text, thought=True) for text in thought_texts]
    parts += [SimpleNamespace(text=text, thought=None) for text in texts]
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))],
        text="".join(texts) or None,
    )


class TrackedSource:
    """Async iterator over fragments that records whether it was closed."""

    def __init__(self, fragments, fail_after=None):
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.closed = False
        self._index = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.fail_after is not None and self._index == self.fail_after:
            raise RuntimeError("connection reset")
        if self._index >= len(self.fragments):
            raise StopAsyncIteration
        fragment = self.fragments[self._index]
        self._index += 1
        return fragment

    async def aclose(self):
        self.closed = True


def stream_over(source):
    async def open_source():
        return source
    return CompletionStream(open_source)


@pytest.fixture
def mock_genai_client():
    """Patch genai.Client so GeminiCompletionClient talks to a MagicMock."""
    with patch("vacaition.services.completion_client.genai.Client") as client_cls:
        sdk_client = MagicMock()
        sdk_client.aio.models.generate_content = AsyncMock()
        sdk_client.aio.models.generate_content_stream = AsyncMock()
        client_cls.return_value = sdk_client
        yield sdk_client


# =============================================================================
# STREAMING PRIMITIVES
# =============================================================================

class TestStreamBuffer:

    def test_accumulates_fragments(self):
        buffer = StreamBuffer()
        buffer.append('[{"name": ')
        buffer.append('"A"}]')

        assert buffer.text == '[{"name": "A"}]'
        assert buffer.fragment_count == 2
        assert len(buffer) == len('[{"name": "A"}]')

    def test_starts_empty(self):
        buffer = StreamBuffer()
        assert buffer.text == ""
        assert len(buffer) == 0


class TestCompletionStream:

    @pytest.mark.asyncio
    async def test_yields_fragments_in_order(self):
        source = TrackedSource(["[", '{"a": 1}', "]"])

        async with stream_over(source) as stream:
            received = [fragment async for fragment in stream]

        assert received == ["[", '{"a": 1}', "]"]
        assert stream.buffer.text == '[{"a": 1}]'
        assert source.closed

    @pytest.mark.asyncio
    async def test_empty_fragments_are_skipped(self):
        async with stream_over(TrackedSource(["a", "", "b"])) as stream:
            received = [fragment async for fragment in stream]

        assert received == ["a", "b"]
        assert stream.buffer.fragment_count == 2

    @pytest.mark.asyncio
    async def test_leaving_early_closes_source(self):
        source = TrackedSource(["one", "two", "three"])

        async with stream_over(source) as stream:
            async for _ in stream:
                break

        assert source.closed
        assert stream.buffer.text == "one"

    @pytest.mark.asyncio
    async def test_source_opened_lazily(self):
        opened = []

        async def open_source():
            opened.append(True)
            return TrackedSource(["x"])

        stream = CompletionStream(open_source)
        assert opened == []

        async with stream:
            async for _ in stream:
                pass

        assert opened == [True]

    @pytest.mark.asyncio
    async def test_second_iteration_raises(self):
        stream = stream_over(TrackedSource(["x"]))
        async with stream:
            async for _ in stream:
                pass

            with pytest.raises(RuntimeError):
                stream.__aiter__()

    @pytest.mark.asyncio
    async def test_mid_stream_failure_becomes_upstream_error(self):
        source = TrackedSource(["[", "{"], fail_after=1)

        with pytest.raises(UpstreamError):
            async with stream_over(source) as stream:
                async for _ in stream:
                    pass

        assert source.closed
        assert stream.buffer.text == "["

    @pytest.mark.asyncio
    async def test_empty_stream_is_upstream_error(self):
        with pytest.raises(UpstreamError, match="Empty response"):
            async with stream_over(TrackedSource(["  "])) as stream:
                async for _ in stream:
                    pass

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        stream = stream_over(TrackedSource(["x"]))
        await stream.aclose()
        await stream.aclose()

        with pytest.raises(RuntimeError):
            stream.__aiter__()


# =============================================================================
# GEMINI CLIENT
# =============================================================================

class TestGeminiCompletionClient:

    @pytest.mark.asyncio
    async def test_complete_returns_reply_text(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = gemini_response(
            '[{"name": "A", ', '"description": "B"}]', thought_texts=["thinking..."]
        )
        client = GeminiCompletionClient(api_key="test-key", model="gemini-test")

        text = await client.complete("prompt")

        assert text == '[{"name": "A", "description": "B"}]'
        call = mock_genai_client.aio.models.generate_content.call_args
        assert call.kwargs["model"] == "gemini-test"
        assert call.kwargs["contents"] == "prompt"
        assert call.kwargs["config"].system_instruction == client.system_instruction

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        client = GeminiCompletionClient(api_key="")

        with pytest.raises(UpstreamError, match="not configured"):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_upstream_error(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.side_effect = RuntimeError("503 overloaded")
        client = GeminiCompletionClient(api_key="test-key")

        with pytest.raises(UpstreamError, match="503 overloaded"):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_empty_reply_is_upstream_error(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = gemini_response()
        client = GeminiCompletionClient(api_key="test-key")

        with pytest.raises(UpstreamError, match="Empty response"):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_error(self, mock_genai_client):
        async def slow_call(**kwargs):
            await asyncio.sleep(1)

        mock_genai_client.aio.models.generate_content.side_effect = slow_call
        client = GeminiCompletionClient(api_key="test-key", timeout_seconds=0.01)

        with pytest.raises(UpstreamError, match="timed out"):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_stream_relays_chunk_text(self, mock_genai_client):
        closed = []

        async def chunks():
            try:
                for text in ['{"destination": ', None, '"Destin"}']:
                    yield SimpleNamespace(text=text)
            finally:
                closed.append(True)

        mock_genai_client.aio.models.generate_content_stream.return_value = chunks()
        client = GeminiCompletionClient(api_key="test-key")

        stream = client.stream("prompt")
        mock_genai_client.aio.models.generate_content_stream.assert_not_called()

        async with stream:
            received = [fragment async for fragment in stream]

        assert received == ['{"destination": ', '"Destin"}']
        assert stream.buffer.text == '{"destination": "Destin"}'
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_stream_open_failure_is_upstream_error(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content_stream.side_effect = RuntimeError("quota")
        client = GeminiCompletionClient(api_key="test-key")

        with pytest.raises(UpstreamError, match="quota"):
            async with client.stream("prompt") as stream:
                async for _ in stream:
                    pass

    def test_sdk_client_is_created_once(self, mock_genai_client):
        client = GeminiCompletionClient(api_key="test-key")

        assert client._get_client() is client._get_client()

    def test_shared_client_singleton(self):
        assert get_completion_client() is get_completion_client()
