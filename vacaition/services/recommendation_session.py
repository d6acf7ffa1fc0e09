"""
Recommendation Session - state machine driving retrieval rounds

One session owns one SessionState and is the only thing that mutates it.
The presentation layer reads session.state or subscribes to transitions.

States:
    idle -> loading -> ready | error
    ready | error -> loading        (try again / get more)
    any -> idle                     (reset)

Retrievals:
- start_single_retrieval: one activity-finder round. Results are replaced.
  A malformed reply falls back to line-split placeholders; an upstream
  failure yields one synthetic "Error" entry.
- start_batch_retrieval: `count` vacation rounds, strictly sequential because
  each round's exclusion list includes every destination accepted before
  it. Results are appended as each round lands. A round that fails (bad
  reply or upstream error) or repeats an excluded destination is skipped.
  If every round fails upstream the batch ends in error with one "Error"
  entry.

Superseded work:
- Each retrieval (and reset) bumps a generation counter. A round that
  resolves after its generation was superseded is discarded.
"""

import logging
from typing import Callable, List, Optional

from vacaition.agents.recommendation import (
    ParseResult,
    RecommendationMode,
    ResponseShape,
    build_prompt,
    fallback_recommendations,
    parse,
    shape_for_mode,
)
from vacaition.config import settings
from vacaition.schemas.recommendations import (
    Recommendation,
    RecommendationRequest,
    SessionState,
    VacationSuggestion,
)
from vacaition.services.completion_client import CompletionClient, UpstreamError
from vacaition.utils.constants import (
    ERROR_ENTRY_NAME,
    MAX_BATCH_SIZE,
    MAX_FALLBACK_ENTRIES,
    NO_RECOMMENDATIONS_MESSAGE,
    UPSTREAM_ERROR_MESSAGE,
)
from vacaition.utils.logging import preview

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]

# Network failures a CompletionClient implementation may let through
_UPSTREAM_FAILURES = (UpstreamError, OSError)


def _failure_message(error: Exception) -> str:
    if isinstance(error, UpstreamError):
        return error.message
    return f"Network error: {error}"


def _ordered_unique(values: List[str]) -> List[str]:
    seen = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class RecommendationSession:
    """
    Drives PromptBuilder -> CompletionClient -> ResponseParser round trips.

    Duplicate destinations are compared by exact, case-sensitive string
    match and suppressed; suppressed names are kept in
    state.suppressed_duplicates.
    """

    def __init__(
        self,
        client: CompletionClient,
        max_fallback_entries: int = MAX_FALLBACK_ENTRIES,
    ):
        self.client = client
        self.max_fallback_entries = max_fallback_entries
        self.state = SessionState()
        self._generation = 0
        self._listeners: List[SessionListener] = []

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener(state)`` after every transition; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception as e:
                logger.error(f"Session listener failed: {type(e).__name__}: {e}")

    # -------------------------------------------------------------------------
    # Lifecycle helpers
    # -------------------------------------------------------------------------

    def _begin(self) -> int:
        self._generation += 1
        self.state.status = "loading"
        self.state.error = None
        self.state.message = None
        self.state.partial = None
        self._notify()
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _exclusions(self) -> List[str]:
        destinations = [
            result.destination
            for result in self.state.results
            if isinstance(result, VacationSuggestion)
        ]
        return _ordered_unique(self.state.excluded_destinations + destinations)

    async def _fetch(
        self,
        prompt: str,
        shape: ResponseShape,
        generation: int,
        streaming: bool,
    ) -> Optional[ParseResult]:
        """
        Run one completion and parse the final reply.

        Returns None when the round was superseded while streaming.
        Raises whatever the client raises (UpstreamError, network errors).
        """
        if not streaming:
            text = await self.client.complete(prompt)
            return parse(text, shape)

        async with self.client.stream(prompt) as stream:
            async for _ in stream:
                if not self._is_current(generation):
                    logger.info("Streaming round superseded, closing stream")
                    return None
                progress = parse(stream.buffer.text, shape)
                if progress.ok:
                    # Display only; never promoted to results
                    self.state.partial = progress.value
                    self._notify()
            text = stream.buffer.text
        return parse(text, shape)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def start_single_retrieval(
        self,
        request: RecommendationRequest,
        streaming: bool = False,
    ) -> SessionState:
        """
        Fetch activity recommendations once and replace results.

        Args:
            request: Validated recommendation request
            streaming: Stream the reply and publish progress via state.partial

        Returns:
            The session state after the round (also available as self.state)
        """
        generation = self._begin()
        prompt = build_prompt(request, RecommendationMode.ACTIVITIES)
        logger.info("Single retrieval started")

        try:
            result = await self._fetch(
                prompt, shape_for_mode(RecommendationMode.ACTIVITIES), generation, streaming
            )
        except _UPSTREAM_FAILURES as e:
            if not self._is_current(generation):
                return self.state
            message = _failure_message(e)
            logger.error(f"Single retrieval failed upstream: {message}")
            self.state.results = [Recommendation(
                name=ERROR_ENTRY_NAME,
                description=f"{UPSTREAM_ERROR_MESSAGE} ({message})",
            )]
            self.state.status = "error"
            self.state.error = message
            self.state.partial = None
            self._notify()
            return self.state

        if result is None or not self._is_current(generation):
            logger.info("Discarding superseded single retrieval")
            return self.state

        if result.ok:
            self.state.results = list(result.value)
            logger.info(f"Single retrieval returned {len(result.value)} recommendations")
        else:
            placeholders = fallback_recommendations(result.raw_text, self.max_fallback_entries)
            logger.warning(
                f"Unparseable reply ({result.reason}), using {len(placeholders)} "
                f"placeholder entries. Preview: '{preview(result.raw_text)}'"
            )
            self.state.results = placeholders
            if not placeholders:
                self.state.message = NO_RECOMMENDATIONS_MESSAGE

        self.state.status = "ready"
        self.state.partial = None
        self._notify()
        return self.state

    async def start_batch_retrieval(
        self,
        request: RecommendationRequest,
        count: Optional[int] = None,
        streaming: bool = False,
    ) -> SessionState:
        """
        Fetch ``count`` vacation destinations, one sequential round at a time.

        Args:
            request: Validated request; its excluded_destinations seed the
                session's exclusion list
            count: Number of rounds (defaults to settings.DEFAULT_BATCH_SIZE)
            streaming: Stream each round and publish progress via state.partial

        Returns:
            The session state after the batch (also available as self.state)

        Raises:
            ValueError: If count is outside 1..MAX_BATCH_SIZE
        """
        if count is None:
            count = settings.DEFAULT_BATCH_SIZE
        if not 1 <= count <= MAX_BATCH_SIZE:
            raise ValueError(f"count must be between 1 and {MAX_BATCH_SIZE}, got {count}")

        generation = self._begin()
        # A previous failed batch left an Error entry; new rounds replace it
        self.state.results = [
            result for result in self.state.results
            if not (isinstance(result, Recommendation) and result.name == ERROR_ENTRY_NAME)
        ]
        self.state.excluded_destinations = _ordered_unique(
            self.state.excluded_destinations + list(request.excluded_destinations)
        )

        accepted = 0
        upstream_failures = 0
        last_failure: Optional[str] = None

        for round_number in range(1, count + 1):
            excluded = self._exclusions()
            prompt = build_prompt(
                request, RecommendationMode.VACATION, excluded_destinations=excluded
            )
            logger.info(
                f"Batch round {round_number}/{count} started, excluding {len(excluded)} destinations"
            )

            try:
                result = await self._fetch(
                    prompt, shape_for_mode(RecommendationMode.VACATION), generation, streaming
                )
            except _UPSTREAM_FAILURES as e:
                if not self._is_current(generation):
                    return self.state
                upstream_failures += 1
                last_failure = _failure_message(e)
                logger.warning(f"Batch round {round_number} failed upstream, skipping: {last_failure}")
                continue

            if result is None or not self._is_current(generation):
                logger.info("Discarding superseded batch retrieval")
                return self.state

            self.state.partial = None
            if not result.ok:
                logger.warning(f"Batch round {round_number} unparseable, skipping: {result.reason}")
                continue

            suggestion: VacationSuggestion = result.value
            if suggestion.destination in excluded:
                logger.warning(f"Batch round {round_number} repeated a destination, suppressing it")
                self.state.suppressed_duplicates.append(suggestion.destination)
                self._notify()
                continue

            self.state.results.append(suggestion)
            self.state.excluded_destinations.append(suggestion.destination)
            accepted += 1
            self._notify()

        if accepted:
            self.state.status = "ready"
        elif upstream_failures:
            self.state.results.append(Recommendation(
                name=ERROR_ENTRY_NAME,
                description=f"{UPSTREAM_ERROR_MESSAGE} ({last_failure})",
            ))
            self.state.status = "error"
            self.state.error = last_failure
        else:
            self.state.status = "ready"
            self.state.message = NO_RECOMMENDATIONS_MESSAGE

        logger.info(
            f"Batch finished: accepted={accepted}, upstream_failures={upstream_failures}, "
            f"status={self.state.status}"
        )
        self._notify()
        return self.state

    def reset(self) -> SessionState:
        """Start over: idle, no results, no exclusions; in-flight rounds are discarded."""
        self._generation += 1
        self.state = SessionState()
        self._notify()
        return self.state
