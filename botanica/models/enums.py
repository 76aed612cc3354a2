"""Closed value sets used by the persisted plant records.

Values are the strings the collection has always been stored with, so a
slot written by earlier versions of the app validates unchanged.
"""

from enum import StrEnum

# ── Health snapshot ─────────────────────────────────────────────────────────


class HealthStatusEnum(StrEnum):
    """Overall condition reported by the analysis."""

    optimal = "óptimo"
    alert = "alerta"
    critical = "crítico"


class PestRiskEnum(StrEnum):
    low = "bajo"
    medium = "medio"
    high = "alto"


# ── Transplant study ────────────────────────────────────────────────────────


class TransplantNeedEnum(StrEnum):
    """How urgently the specimen needs a bigger container."""

    immediate = "inmediata"
    recommended = "recomendada"
    prepare = "preparar"
    not_needed = "no_necesario"


class TraumaRiskEnum(StrEnum):
    low = "bajo"
    medium = "medio"
    high = "alto"


# ── Care events ─────────────────────────────────────────────────────────────


class HistoryKindEnum(StrEnum):
    """The three independently stored event streams of a plant."""

    watering = "watering"
    fertilizing = "fertilizing"
    moisture = "moisture"


class FertilizerTypeEnum(StrEnum):
    """Fertilizer presentation recorded with each fertilizing event."""

    liquid = "líquido"
    stick = "barritas"
