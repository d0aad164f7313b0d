"""Classification pipeline package."""

from .engine import ClassificationEngine, build_classification_prompt, normalize_category_response
from .heuristics import HeuristicClassifier, HeuristicRule
from .models import CategoryMap, ClassificationResult

__all__ = [
    "CategoryMap",
    "ClassificationEngine",
    "ClassificationResult",
    "HeuristicClassifier",
    "HeuristicRule",
    "build_classification_prompt",
    "normalize_category_response",
]
