"""Extraction of the analysis payload from agent response envelopes.

The remote analysis agent does not return a fixed shape. Depending on the
call and the model behind it, the payload may arrive directly under
``response.result``, as JSON text in ``response.message``, inside a JSON
``raw_response`` string, or wrapped in one more ``result`` or
``response.result`` layer. Unwrapping is expressed as two ordered lists of
small strategies:

* locators, tried in order until one finds a candidate payload;
* refiners, each applied once in order to peel a layer of encoding or
  nesting off the current candidate.

Every strategy returns either ``Found(value)`` or ``NOT_FOUND``. A decode
failure is simply ``NOT_FOUND``; nothing here raises.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from ..config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Found:
    """A strategy produced a value."""

    value: Any


class _NotFound:
    """A strategy contributed nothing."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()

Extraction = Union[Found, _NotFound]
Locator = Callable[[Any], Extraction]
Refiner = Callable[[Any], Extraction]


def lookup(obj: Any, key: str) -> Any:
    """Read ``key`` from a mapping or, failing that, an attribute."""
    if obj is None or isinstance(obj, (str, bytes, list, tuple, int, float, bool)):
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def lookup_path(obj: Any, *keys: str) -> Any:
    """Follow a chain of keys, returning None as soon as one is missing."""
    for key in keys:
        obj = lookup(obj, key)
        if obj is None:
            return None
    return obj


def decode(value: Any) -> Extraction:
    """Decode JSON text into a structured value."""
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            return NOT_FOUND
    if not isinstance(value, str):
        return NOT_FOUND
    try:
        return Found(json.loads(value))
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug("Envelope decode step skipped", error=str(e))
        return NOT_FOUND


def is_present(value: Any) -> bool:
    """
    Whether an agent-supplied value counts as present.

    None, False, zero, NaN and empty strings are absent. Containers are
    present even when empty, so an empty ``result`` mapping still wins over
    later fallbacks.
    """
    if value is None or isinstance(value, bool):
        return value is True
    if isinstance(value, (int, float)):
        return value == value and value != 0
    if isinstance(value, (str, bytes)):
        return len(value) > 0
    return True


def _present(value: Any) -> Extraction:
    return Found(value) if is_present(value) else NOT_FOUND


# Locators: each looks in one place for the initial candidate.


def from_response_result(envelope: Any) -> Extraction:
    """Candidate is ``envelope.response.result``."""
    return _present(lookup_path(envelope, "response", "result"))


def from_response_message(envelope: Any) -> Extraction:
    """Candidate is the decoded ``envelope.response.message``."""
    message = lookup_path(envelope, "response", "message")
    if not is_present(message):
        return NOT_FOUND
    decoded = decode(message)
    return _present(decoded.value) if decoded else NOT_FOUND


def from_raw_response(envelope: Any) -> Extraction:
    """Candidate is found inside the decoded ``envelope.raw_response``."""
    raw_response = lookup(envelope, "raw_response")
    if not is_present(raw_response):
        return NOT_FOUND
    decoded = decode(raw_response)
    if not decoded:
        return NOT_FOUND
    raw = decoded.value
    candidates = (lookup_path(raw, "response", "result"), lookup(raw, "result"), raw)
    return next((Found(c) for c in candidates if is_present(c)), NOT_FOUND)


LOCATORS: List[Locator] = [
    from_response_result,
    from_response_message,
    from_raw_response,
]


# Refiners: each may replace the candidate with something closer to the payload.


def decode_string(candidate: Any) -> Extraction:
    """Decode a candidate that is still JSON text."""
    if isinstance(candidate, str):
        return decode(candidate)
    return NOT_FOUND


def peel_result(candidate: Any) -> Extraction:
    """Descend into a nested ``result`` mapping."""
    inner = lookup(candidate, "result")
    if is_present(inner) and not isinstance(
        inner, (str, bytes, list, tuple, int, float, bool)
    ):
        return Found(inner)
    return NOT_FOUND


def peel_response_result(candidate: Any) -> Extraction:
    """Descend into a nested ``response.result``."""
    return _present(lookup_path(candidate, "response", "result"))


REFINERS: List[Refiner] = [
    decode_string,
    peel_result,
    peel_response_result,
    decode_string,
]


def locate_candidate(envelope: Any, locators: Optional[List[Locator]] = None) -> Any:
    """Return the first candidate any locator finds, or None."""
    for locator in locators or LOCATORS:
        found = locator(envelope)
        if found:
            return found.value
    return None


def refine_candidate(candidate: Any, refiners: Optional[List[Refiner]] = None) -> Any:
    """Apply each refiner once, keeping the previous candidate on NOT_FOUND."""
    for refiner in refiners or REFINERS:
        found = refiner(candidate)
        if found:
            candidate = found.value
    return candidate


def parse_agent_response(envelope: Any) -> Any:
    """
    Extract the analysis payload from an agent response envelope.

    Args:
        envelope: Whatever the analysis transport returned

    Returns:
        The best candidate payload. This may be None, a string or a
        structured value; callers must check for a ``stocks`` field.
    """
    if not is_present(envelope):
        return None

    candidate = refine_candidate(locate_candidate(envelope))

    logger.debug(
        "Agent response unwrapped",
        candidate_type=type(candidate).__name__,
        has_stocks=lookup(candidate, "stocks") is not None,
    )
    return candidate
