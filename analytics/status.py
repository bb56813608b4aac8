"""
analytics/status.py

Status aggregation and synonym-tolerant derived metrics.

Rows carry a free-text ``status`` label typed by users. Raw counts keep every
label exactly as entered; derived buckets (completed, pending, ...) are built
from a fixed synonym table that maps known spellings to a StatusCategory.
No fuzzy matching happens here: a label outside the table stays visible in the
raw counts but contributes to no derived bucket.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

NO_STATUS_LABEL = "Sem Status"


class StatusCategory(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    ERROR = "error"
    NO_RESPONSE = "no_response"
    IN_PROGRESS = "in_progress"


_DEFAULT_SYNONYMS: dict[StatusCategory, tuple[str, ...]] = {
    StatusCategory.COMPLETED: ("Concluído", "Concluido", "Aprovado", "Passou"),
    StatusCategory.PENDING: ("Pendente", "Aguardando", "Não testado"),
    StatusCategory.ERROR: ("Erro",),
    StatusCategory.NO_RESPONSE: ("Sem retorno", "Sem Retorno"),
    StatusCategory.IN_PROGRESS: ("Agendado", "Em Andamento", "Executando", "Testando"),
}


# ---------------------------------------------------------------------------
# Synonym table
# ---------------------------------------------------------------------------


class SynonymTable:
    """
    Exact label → StatusCategory lookup.

    Labels are matched as entered (case and accents included). Swapping the
    table is how a different locale or team vocabulary is supported.
    """

    def __init__(self, synonyms: Mapping[StatusCategory, Iterable[str]]) -> None:
        self._by_label: dict[str, StatusCategory] = {}
        for category, labels in synonyms.items():
            for label in labels:
                self._by_label[label] = category

    @classmethod
    def default(cls) -> "SynonymTable":
        return cls(_DEFAULT_SYNONYMS)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "SynonymTable":
        """
        Load a table shaped ``{"completed": ["Done", ...], ...}``.

        Unknown category keys are ignored. An unreadable or malformed file
        yields the default table so the analysis path never fails on config.
        """

        try:
            raw = Path(path).read_text(encoding="utf-8")
            data = json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.warning("Status synonym file %s unusable, using defaults: %s", path, exc)
            return cls.default()

        if not isinstance(data, dict):
            logger.warning("Status synonym file %s is not a JSON object, using defaults", path)
            return cls.default()

        synonyms: dict[StatusCategory, list[str]] = {}
        for key, labels in data.items():
            try:
                category = StatusCategory(str(key))
            except ValueError:
                logger.warning("Ignoring unknown status category %r in %s", key, path)
                continue
            if isinstance(labels, list):
                synonyms[category] = [str(label) for label in labels]
        return cls(synonyms)

    def category_of(self, label: str) -> StatusCategory | None:
        return self._by_label.get(label)

    def labels_for(self, category: StatusCategory) -> list[str]:
        return [label for label, cat in self._by_label.items() if cat is category]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusAggregate:
    """Raw status distribution of a set of rows."""

    status_counts: dict[str, int]
    total: int


def _status_label(row: Mapping[str, Any]) -> str:
    value = row.get("status")
    if value is None:
        return NO_STATUS_LABEL
    label = str(value)
    return label if label.strip() else NO_STATUS_LABEL


def aggregate(rows: Iterable[Mapping[str, Any]]) -> StatusAggregate:
    """
    Count rows per status label.

    Labels are not normalized: "Em Andamento" and "em andamento" are distinct
    keys. Rows without a usable status are counted under ``"Sem Status"``.
    """

    counts: dict[str, int] = {}
    total = 0
    for row in rows:
        label = _status_label(row)
        counts[label] = counts.get(label, 0) + 1
        total += 1
    return StatusAggregate(status_counts=counts, total=total)


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusMetrics:
    """
    Derived counts and 0–100 rates for one snapshot.

    Rates use ``total`` as the denominator and are exactly 0.0 when
    ``total`` is zero or negative.
    """

    total: int
    completed: int
    pending: int
    errors: int
    no_response: int
    in_progress: int
    completion_rate: float
    error_rate: float
    no_response_rate: float
    pending_rate: float
    in_progress_rate: float

    @property
    def remaining(self) -> int:
        return self.total - self.completed


def _rate(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total * 100.0


def derive_metrics(
    status_counts: Mapping[str, int],
    total: int,
    synonyms: SynonymTable | None = None,
) -> StatusMetrics:
    """Sum counts per StatusCategory and compute rates against ``total``."""

    table = synonyms or SynonymTable.default()
    buckets = {category: 0 for category in StatusCategory}
    for label, count in status_counts.items():
        category = table.category_of(label)
        if category is not None:
            buckets[category] += int(count)

    completed = buckets[StatusCategory.COMPLETED]
    pending = buckets[StatusCategory.PENDING]
    errors = buckets[StatusCategory.ERROR]
    no_response = buckets[StatusCategory.NO_RESPONSE]
    in_progress = buckets[StatusCategory.IN_PROGRESS]

    return StatusMetrics(
        total=total,
        completed=completed,
        pending=pending,
        errors=errors,
        no_response=no_response,
        in_progress=in_progress,
        completion_rate=_rate(completed, total),
        error_rate=_rate(errors, total),
        no_response_rate=_rate(no_response, total),
        pending_rate=_rate(pending, total),
        in_progress_rate=_rate(in_progress, total),
    )


def status_percentages(status_counts: Mapping[str, int], total: int) -> dict[str, float]:
    """
    Per-label display percentages rounded to one decimal.

    When the counts add up to ``total`` the largest bucket absorbs the
    rounding drift so the values sum to exactly 100.0.
    """

    if total <= 0 or not status_counts:
        return {label: 0.0 for label in status_counts}

    percentages = {
        label: round(count / total * 100.0, 1) for label, count in status_counts.items()
    }
    if sum(status_counts.values()) == total:
        drift = round(100.0 - sum(percentages.values()), 1)
        if drift:
            largest = max(status_counts, key=lambda label: status_counts[label])
            percentages[largest] = round(percentages[largest] + drift, 1)
    return percentages
