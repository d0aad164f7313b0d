"""Classification engine built on top of the model gateway.

The engine asks the configured language model for exactly one category key,
matches the free-text answer against the category map, and falls back to
keyword heuristics and finally the fallback category, so every document ends
up with a valid key even when the model is unavailable or rambling.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from docsort.llm import ModelGateway
from docsort.organization.cancellation import CancellationToken

from .heuristics import HeuristicClassifier
from .models import CategoryMap, ClassificationResult

LOGGER = logging.getLogger(__name__)

_LIST_MARKER = re.compile(r"^(?:[-*•>]+|\d+[.)])\s*")
_PREFIX = re.compile(
    r"^(?:category|categorie|categorie[eë]n|classification|classificatie"
    r"|answer|antwoord|label|class)"
    r"\s*[:=\-]\s*",
    re.IGNORECASE,
)
_FALLBACK_MARKER = re.compile(r"\s*\((?:fallback)\)\s*$", re.IGNORECASE)
_STRIP_CHARS = " \t\"'`*_“”‘’«»"
_TRAILING_PUNCTUATION = ".,;:!"


def build_classification_prompt(category_map: CategoryMap, text: str, max_chars: int) -> str:
    """Return the prompt asking the model to pick one category key.

    Args:
        category_map: Categories to offer, listed in configured order.
        text: Extracted document text.
        max_chars: Character budget for the embedded document text.

    Returns:
        str: Prompt text.
    """

    listed = [key for key in category_map.keys() if key != category_map.fallback]
    lines = [
        "Classify the document below into exactly one of these categories:",
        *(f"- {key}" for key in listed),
        f"- {category_map.fallback} (fallback)",
        "",
        "Answer with the category name exactly as written above and nothing else.",
        f"Use {category_map.fallback} when no other category fits.",
        "",
        "Document:",
        text[:max_chars],
    ]
    return "\n".join(lines)


def normalize_category_response(raw: str) -> str:
    """Strip decoration a model tends to wrap around a one-word answer.

    Args:
        raw: Completion text as returned by the model.

    Returns:
        str: Candidate category name (possibly empty).
    """

    line = next((candidate for candidate in raw.splitlines() if candidate.strip()), "")
    candidate = line.strip().strip(_STRIP_CHARS)
    candidate = _LIST_MARKER.sub("", candidate).strip(_STRIP_CHARS)
    candidate = _PREFIX.sub("", candidate).strip(_STRIP_CHARS)
    candidate = _FALLBACK_MARKER.sub("", candidate)
    candidate = candidate.rstrip(_TRAILING_PUNCTUATION).strip(_STRIP_CHARS)
    return candidate


class ClassificationEngine:
    """Resolve extracted text to a category key.

    Order of precedence: model answer matching a key, keyword heuristics on the
    raw text, then the fallback category.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        category_map: CategoryMap,
        heuristics: HeuristicClassifier,
        *,
        max_prompt_chars: int = 8_000,
    ) -> None:
        self._gateway = gateway
        self._categories = category_map
        self._heuristics = heuristics
        self._max_prompt_chars = max_prompt_chars

    @property
    def category_map(self) -> CategoryMap:
        return self._categories

    def classify(
        self,
        text: str,
        cancellation: CancellationToken | None = None,
    ) -> ClassificationResult:
        """Classify extracted document text.

        Args:
            text: Extracted text; empty text skips the model call.
            cancellation: Token forwarded to the gateway.

        Returns:
            ClassificationResult: Result whose category is a category map key.

        Raises:
            OrganizeCancelled: If the run is cancelled while waiting on the model.
        """

        raw_response: Optional[str] = None
        tokens = 0
        if text and text.strip():
            prompt = build_classification_prompt(self._categories, text, self._max_prompt_chars)
            completion = self._gateway.complete(prompt, cancellation)
            tokens = completion.tokens_used
            if completion.ok:
                raw_response = completion.text
                matched = self._match(completion.text)
                if matched is not None:
                    return ClassificationResult(
                        category=matched,
                        source="model",
                        raw_response=raw_response,
                        tokens_used=tokens,
                    )
                LOGGER.info("Model answer %r does not name a configured category.", completion.text)
            else:
                LOGGER.info("Model classification unavailable: %s", completion.error)

        heuristic = self._heuristics.classify(text)
        if heuristic is not None:
            return ClassificationResult(
                category=heuristic,
                source="heuristic",
                raw_response=raw_response,
                tokens_used=tokens,
            )
        return ClassificationResult(
            category=self._categories.fallback,
            source="fallback",
            raw_response=raw_response,
            tokens_used=tokens,
        )

    def _match(self, response: str) -> Optional[str]:
        candidate = normalize_category_response(response)
        if not candidate:
            return None
        return self._categories.match(candidate)


__all__ = ["ClassificationEngine", "build_classification_prompt", "normalize_category_response"]
