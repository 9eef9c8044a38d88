"""Normalize classifier output into ordered `Prediction` lists.

The image model runs in the browser; what reaches the server is its raw
output, usually `[{"className": ..., "probability": ...}, ...]`. These helpers
turn that into `Prediction` objects and pick the top label used as the
record's health status.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping

from models.tree_record import Prediction
from services.errors import ClassifierError

LOGGER = logging.getLogger(__name__)

LABEL_KEYS = ("className", "label")


def _label_of(item: Mapping[str, Any]) -> Any:
    for key in LABEL_KEYS:
        if item.get(key) is not None:
            return item[key]
    return None


def normalize_predictions(raw: Any) -> List[Prediction]:
    """Return classifier output as an ordered list of predictions.

    Args:
        raw: Sequence of mappings with a `className` (or `label`) and a
            `probability`, or a plain `{label: probability}` mapping.

    Raises:
        ClassifierError: If an entry has no label or a non-numeric probability.
    """
    if raw is None:
        raise ClassifierError("No predictions available")

    items: Iterable[Any]
    if isinstance(raw, Mapping):
        items = [{"className": k, "probability": v} for k, v in raw.items()]
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        raise ClassifierError(f"Unsupported classifier output type: {type(raw).__name__}")

    predictions: List[Prediction] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ClassifierError(f"Prediction {index} is not an object")
        label = _label_of(item)
        if label is None:
            raise ClassifierError(f"Prediction {index} has no label")
        try:
            probability = float(item.get("probability"))
        except (TypeError, ValueError, OverflowError) as exc:
            raise ClassifierError(f"Prediction {index} has a non-numeric probability") from exc
        if not math.isfinite(probability):
            raise ClassifierError(f"Prediction {index} has a non-finite probability")
        predictions.append(Prediction(label=str(label), probability=probability))
    return predictions


def top_prediction(predictions: List[Prediction]) -> Prediction:
    """Return the highest-probability prediction; later entries win ties."""
    if not predictions:
        raise ClassifierError("No predictions available")
    best = predictions[0]
    for candidate in predictions[1:]:
        if candidate.probability >= best.probability:
            best = candidate
    return best


def health_status_for(predictions: List[Prediction]) -> str:
    """Lower-cased label of the top prediction."""
    status = top_prediction(predictions).label.strip().lower()
    LOGGER.debug("Top label resolved to %r", status)
    return status
