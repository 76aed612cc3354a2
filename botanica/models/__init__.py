"""Persisted model registry.

Application code can import every stored structure from here::

    from botanica.models import PlantRecord, FertilizingEntry, ...
"""

# ── Enums ───────────────────────────────────────────────────────────────────
from botanica.models.enums import (
    FertilizerTypeEnum,
    HealthStatusEnum,
    HistoryKindEnum,
    PestRiskEnum,
    TransplantNeedEnum,
    TraumaRiskEnum,
)

# ── Plant aggregate ─────────────────────────────────────────────────────────
from botanica.models.plant import (
    SCHEMA_VERSION,
    AnalysisResult,
    BotanicalProfile,
    DatedImage,
    FertilizingEntry,
    LeafAnalysis,
    MaintenanceTips,
    MoistureEntry,
    PlantCare,
    PlantCollection,
    PlantHealth,
    PlantIdentification,
    PlantMeasures,
    PlantRecord,
    SeasonalCare,
    TransplantStudy,
)

__all__ = [
    "SCHEMA_VERSION",
    "AnalysisResult",
    "BotanicalProfile",
    "DatedImage",
    "FertilizerTypeEnum",
    "FertilizingEntry",
    "HealthStatusEnum",
    "HistoryKindEnum",
    "LeafAnalysis",
    "MaintenanceTips",
    "MoistureEntry",
    "PestRiskEnum",
    "PlantCare",
    "PlantCollection",
    "PlantHealth",
    "PlantIdentification",
    "PlantMeasures",
    "PlantRecord",
    "SeasonalCare",
    "TransplantNeedEnum",
    "TraumaRiskEnum",
]
