"""
Response parser for completion service replies.

The completion service is asked for strict JSON but routinely wraps it in
prose or markdown fences, escapes it twice, or (while streaming) has only
sent part of it. parse() isolates the payload and type-checks it against
the expected shape.

parse() NEVER raises. It is called on every growing prefix of a streamed
reply, so it always returns a tagged result:
- ParseSuccess(value=...) with a List[Recommendation] or a VacationSuggestion
- ParseFailure(raw_text=..., reason=...)
"""

import json
import logging
import re
from typing import Any, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from vacaition.agents.recommendation.types import ResponseShape
from vacaition.schemas.recommendations import Recommendation, VacationSuggestion
from vacaition.utils.constants import MAX_FALLBACK_ENTRIES

logger = logging.getLogger(__name__)

# Closed fence, or a fence still open at the end of a streamed prefix
_FENCE_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?([\s\S]*?)(?:```|$)")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_LIST_MARKER_RE = re.compile(r"^(?:[-*•]+|\d+[.)])\s*")
_STRUCTURAL_LINE_RE = re.compile(r"^[\s`\[\]{}(),:;\"']*$")

# Bound on characters scanned while looking for balanced spans in one source;
# a reply made of unclosed brackets would otherwise cost quadratic time
MAX_SCAN_CHARACTERS = 1_000_000
MAX_FALLBACK_NAME_LENGTH = 100


# =============================================================================
# RESULT TYPES
# =============================================================================

class ParseSuccess(BaseModel):
    """Decoded payload matching the requested shape."""
    status: Literal["OK"] = "OK"
    value: Union[List[Recommendation], VacationSuggestion]

    @property
    def ok(self) -> bool:
        return True


class ParseFailure(BaseModel):
    """Reply could not be decoded into the requested shape."""
    status: Literal["FAILED"] = "FAILED"
    raw_text: str
    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[ParseSuccess, ParseFailure]


# =============================================================================
# SPAN EXTRACTION
# =============================================================================

def _brackets_for(shape: ResponseShape) -> Tuple[str, str]:
    if shape is ResponseShape.ACTIVITY_ARRAY:
        return "[", "]"
    return "{", "}"


def _fenced_blocks(text: str) -> List[str]:
    return [m.group(1).strip() for m in _FENCE_RE.finditer(text) if m.group(1).strip()]


def _balanced_span(text: str, start: int, opener: str, closer: str) -> Optional[str]:
    """
    Return text[start:end] where end closes the bracket opened at start.

    Brackets inside JSON strings are ignored. Returns None when the text
    ends before the bracket is closed (an incomplete streaming prefix).
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def _candidate_spans(text: str, opener: str, closer: str) -> Iterator[str]:
    """
    Widest span first, then every balanced span in order of appearance.

    Any number of short bracketed asides may precede the payload. The search
    stops only once MAX_SCAN_CHARACTERS have been scanned in total, which
    only pathological input (thousands of unclosed brackets) reaches.
    """
    first = text.find(opener)
    if first == -1:
        return
    last = text.rfind(closer)
    if last > first:
        yield text[first:last + 1]

    position = first
    scanned = 0
    while position != -1 and scanned < MAX_SCAN_CHARACTERS:
        span = _balanced_span(text, position, opener, closer)
        if span is not None:
            scanned += len(span)
            yield span
        else:
            scanned += len(text) - position
        position = text.find(opener, position + 1)


def _repairs(span: str) -> Iterator[str]:
    """The span as-is, then progressively more aggressive clean-ups."""
    yield span

    # Control characters, smart quotes and trailing commas (common LLM mistakes)
    cleaned = _CONTROL_CHARS_RE.sub("", span)
    cleaned = cleaned.replace("“", '"').replace("”", '"')
    cleaned = cleaned.replace("‘", "'").replace("’", "'")
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    if cleaned != span:
        yield cleaned

    # Escaped-quote artifacts: {\"name\": \"...\"}
    if '\\"' in cleaned:
        yield cleaned.replace('\\"', '"').replace("\\n", "\n")


# =============================================================================
# SHAPE CHECKS
# =============================================================================

def _coerce_activity_array(decoded: Any) -> Optional[List[Recommendation]]:
    if not isinstance(decoded, list):
        return None
    recommendations = []
    for item in decoded:
        if not isinstance(item, dict):
            continue
        try:
            recommendations.append(Recommendation.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed recommendation element")
    return recommendations or None


def _coerce_vacation_object(decoded: Any) -> Optional[VacationSuggestion]:
    if not isinstance(decoded, dict):
        return None
    try:
        return VacationSuggestion.model_validate(decoded)
    except ValidationError:
        return None


def _coerce(decoded: Any, shape: ResponseShape) -> Any:
    if shape is ResponseShape.ACTIVITY_ARRAY:
        return _coerce_activity_array(decoded)
    return _coerce_vacation_object(decoded)


def _decode_first(text: str, shape: ResponseShape) -> Any:
    opener, closer = _brackets_for(shape)
    for span in _candidate_spans(text, opener, closer):
        for attempt in _repairs(span):
            try:
                decoded = json.loads(attempt)
            except ValueError:
                continue
            value = _coerce(decoded, shape)
            if value is not None:
                return value
    return None


def _salvage_complete_objects(text: str) -> Optional[List[Recommendation]]:
    """
    Recover the complete elements of a truncated activity array.

    Used when the reply was cut off (or is still streaming) after some
    elements were fully written.
    """
    start = text.find("[")
    if start == -1:
        return None
    recommendations = []
    position = text.find("{", start)
    while position != -1:
        span = _balanced_span(text, position, "{", "}")
        if span is None:
            break
        for attempt in _repairs(span):
            try:
                decoded = json.loads(attempt)
            except ValueError:
                continue
            if isinstance(decoded, dict):
                try:
                    recommendations.append(Recommendation.model_validate(decoded))
                except ValidationError:
                    pass
            break
        position = text.find("{", position + len(span))
    return recommendations or None


# =============================================================================
# PUBLIC API
# =============================================================================

def _parse(raw_text: str, shape: ResponseShape) -> ParseResult:
    text = raw_text.strip()
    if not text:
        return ParseFailure(raw_text=raw_text, reason="Empty response")

    sources = _fenced_blocks(text) + [text]

    # The whole reply may be a JSON string literal wrapping the payload
    if text.startswith('"'):
        try:
            unwrapped = json.loads(text)
        except ValueError:
            unwrapped = None
        if isinstance(unwrapped, str):
            sources.insert(0, unwrapped)

    for source in sources:
        value = _decode_first(source, shape)
        if value is not None:
            return ParseSuccess(value=value)

    if shape is ResponseShape.ACTIVITY_ARRAY:
        for source in sources:
            salvaged = _salvage_complete_objects(source)
            if salvaged:
                return ParseSuccess(value=salvaged)

    return ParseFailure(
        raw_text=raw_text,
        reason=f"No valid {shape.value} payload found in response",
    )


def parse(raw_text: str, shape: ResponseShape) -> ParseResult:
    """
    Extract the expected JSON payload from a completion reply.

    Args:
        raw_text: Full reply, or the current prefix of a streamed reply
        shape: ResponseShape.ACTIVITY_ARRAY or ResponseShape.VACATION_OBJECT

    Returns:
        ParseSuccess with the decoded, type-checked value, or ParseFailure
        carrying the raw text. Never raises.
    """
    if not isinstance(raw_text, str):
        return ParseFailure(raw_text=str(raw_text), reason="Response is not text")
    try:
        return _parse(raw_text, ResponseShape(shape))
    except Exception as e:
        logger.warning(f"Unexpected error while parsing response: {e}")
        return ParseFailure(raw_text=raw_text, reason=f"Parser error: {e}")


def fallback_recommendations(
    raw_text: str,
    limit: int = MAX_FALLBACK_ENTRIES,
) -> List[Recommendation]:
    """
    Synthesize placeholder recommendations from an unparseable reply.

    Each non-empty, non-structural line becomes one entry; list markers are
    stripped and "Name: description" lines are split. At most ``limit``
    entries are returned so a long essay does not flood the results.
    """
    entries: List[Recommendation] = []
    for line in (raw_text or "").splitlines():
        if len(entries) >= limit:
            break
        stripped = line.strip()
        if not stripped or stripped.startswith("```") or _STRUCTURAL_LINE_RE.match(stripped):
            continue
        stripped = _LIST_MARKER_RE.sub("", stripped).replace("**", "").strip()
        if not stripped:
            continue

        name, separator, rest = stripped.partition(":")
        splittable = separator and rest.strip() and not rest.startswith("//")
        if splittable and len(name) <= MAX_FALLBACK_NAME_LENGTH:
            entries.append(Recommendation(name=name.strip(), description=rest.strip()))
        else:
            entries.append(Recommendation(
                name=stripped[:MAX_FALLBACK_NAME_LENGTH],
                description=stripped,
            ))
    return entries
