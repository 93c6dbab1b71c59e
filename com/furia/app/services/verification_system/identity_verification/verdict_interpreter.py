"""Turn raw vision classifier output into a VerificationVerdict.

The classifier is asked for JSON but is not guaranteed to answer with it, so
every response is first sorted into a StructuredResponse or a
FreeTextResponse. Free text is scored with a keyword heuristic that only
reports a match when a positive keyword is present.
"""
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import VerificationVerdict

logger = logging.getLogger(__name__)

MATCH_KEYWORDS = ("correspondência", "match", "mesma pessoa")
# Portuguese keywords are discarded when negated ("não há correspondência")
NEGATABLE_KEYWORDS = ("correspondência", "mesma pessoa")

_NEGATION = re.compile(r"\bn[ãa]o\s+(?:\S+\s+){0,2}$")
_DECIMAL = re.compile(r"(\d+\.\d+)")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class StructuredResponse:
    verdict: VerificationVerdict


@dataclass(frozen=True)
class FreeTextResponse:
    text: str


ClassifierResponse = Union[StructuredResponse, FreeTextResponse]


def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def _string_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    return None


def parse_response(raw_text: Optional[str]) -> ClassifierResponse:
    text = raw_text or ""
    candidate = text.strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError):
        return FreeTextResponse(text)

    if not isinstance(data, dict) or not isinstance(data.get("match"), bool):
        return FreeTextResponse(text)

    return StructuredResponse(VerificationVerdict(
        match=data["match"],
        confidence=_finite_number(data.get("confidence")),
        reasons=_string_list(data.get("reasons")),
    ))


def _keyword_present(text: str, keyword: str) -> bool:
    start = text.find(keyword)
    while start != -1:
        if keyword not in NEGATABLE_KEYWORDS or not _NEGATION.search(text[:start]):
            return True
        start = text.find(keyword, start + 1)
    return False


def interpret_free_text(text: str) -> VerificationVerdict:
    lowered = text.lower()
    is_match = any(_keyword_present(lowered, keyword) for keyword in MATCH_KEYWORDS)

    confidence = 0.0
    found = _DECIMAL.search(text)
    if found and math.isfinite(float(found.group(1))):
        confidence = float(found.group(1))

    return VerificationVerdict(match=is_match, confidence=confidence)


def interpret(raw_text: Optional[str]) -> VerificationVerdict:
    """Best-effort verdict for any classifier output. Never raises."""
    response = parse_response(raw_text)
    if isinstance(response, StructuredResponse):
        return response.verdict

    logger.warning(f"ParseDegraded: classifier response is not structured JSON, using keyword heuristic "
                   f"({len(response.text)} chars)")
    return interpret_free_text(response.text)
