"""Plant record aggregate persisted in the key-value slot.

Attributes use English names; each field is aliased to the key the
collection is stored under, so ``model_dump(by_alias=True)`` produces the
persisted layout and records written by older versions load as-is.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from botanica.models.enums import (
    FertilizerTypeEnum,
    HealthStatusEnum,
    PestRiskEnum,
    TransplantNeedEnum,
    TraumaRiskEnum,
)

SCHEMA_VERSION = 1


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _round_number(value: Any) -> Any:
    if isinstance(value, float):
        return round(value)
    return value


def _normalize_choice(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
WholeNumber = Annotated[int, BeforeValidator(_round_number)]


class StoredModel(BaseModel):
    """Base for every persisted structure; accepts attribute or stored names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Analysis-derived snapshots ──────────────────────────────────────────────


class PlantIdentification(StoredModel):
    scientific_name: str = Field(alias="cientifico", min_length=1)
    common_name: str = Field(default="", alias="comun")


class LeafAnalysis(StoredModel):
    coloration: str = Field(default="", alias="coloracion")
    shape: str = Field(default="", alias="forma")
    detected_problems: str = Field(default="", alias="problemas_detectados")
    turgor: str = Field(default="", alias="turgencia")


class PlantHealth(StoredModel):
    status: Annotated[HealthStatusEnum, BeforeValidator(_normalize_choice)] = Field(alias="estado")
    observations: str = Field(default="", alias="observaciones")
    substrate_moisture: WholeNumber | None = Field(default=None, alias="hidrometria", ge=0, le=10)
    leaf_analysis: str | None = Field(default=None, alias="analisis_foliar")
    detailed_leaf_analysis: LeafAnalysis | None = Field(default=None, alias="analisis_foliar_detallado")
    pest_risk: Annotated[PestRiskEnum | None, BeforeValidator(_normalize_choice)] = Field(
        default=None,
        alias="riesgo_plagas",
    )
    vigor_index: float | None = Field(default=None, alias="vigor_index", ge=0, le=100)
    root_health_index: float | None = Field(default=None, alias="estado_raices", ge=0, le=100)


class PlantMeasures(StoredModel):
    """Biometry snapshot; any field may be missing in a user override."""

    height_cm: float | None = Field(default=None, alias="altura_cm", ge=0)
    max_stem_length_cm: float | None = Field(default=None, alias="longitud_max_tallo_cm", ge=0)
    pot_diameter_cm: float | None = Field(default=None, alias="maceta_diametro_cm", ge=0)
    pot_height_cm: float | None = Field(default=None, alias="maceta_altura_cm", ge=0)
    species_max_height_cm: float | None = Field(default=None, alias="altura_max_especie_cm", ge=0)


class TransplantStudy(StoredModel):
    need: Annotated[TransplantNeedEnum, BeforeValidator(_normalize_choice)] = Field(alias="necesidad")
    target_pot_cm: float = Field(alias="maceta_objetivo_cm", ge=0)
    next_estimated_date: str = Field(default="", alias="proxima_fecha_estimada")
    trauma_risk: Annotated[TraumaRiskEnum | None, BeforeValidator(_normalize_choice)] = Field(
        default=None,
        alias="riesgo_trauma",
    )
    relation_analysis: str = Field(default="", alias="analisis_relacion")


class SeasonalCare(StoredModel):
    spring: str = Field(default="", alias="primavera")
    summer: str = Field(default="", alias="verano")
    autumn: str = Field(default="", alias="otono")
    winter: str = Field(default="", alias="invierno")


class MaintenanceTips(StoredModel):
    pruning: str = Field(default="", alias="poda")
    leaf_cleaning: str = Field(default="", alias="limpieza_hojas")
    dry_leaf_removal: str = Field(default="", alias="retirada_hojas_secas")
    other_tips: str = Field(default="", alias="otros_consejos")


class PlantCare(StoredModel):
    water_ml: float | None = Field(default=None, alias="agua_ml", ge=0)
    frequency_days: WholeNumber | None = Field(default=None, alias="frecuencia_dias", ge=0)
    optimal_light: str = Field(default="", alias="luz_optima")
    temp_min: float | None = Field(default=None, alias="temp_min")
    temp_max: float | None = Field(default=None, alias="temp_max")
    temp_optimal: float | None = Field(default=None, alias="temp_optima")
    water_balance_status: str | None = Field(default=None, alias="balance_hidrico_status")
    watering_technique: str = Field(default="", alias="forma_riego")
    water_amount_info: str = Field(default="", alias="cantidad_agua_info")
    misting_recommendation: str = Field(default="", alias="recomendacion_aspersion")
    seasonal_guidance: SeasonalCare = Field(default_factory=SeasonalCare, alias="periodicidad_estacional")
    maintenance_tips: MaintenanceTips | None = Field(default=None, alias="mantenimiento_especifico")


class BotanicalProfile(StoredModel):
    geographic_origin: str = Field(default="", alias="origen_geografico")
    leaf_type: str = Field(default="", alias="tipo_hojas")
    root_type: str = Field(default="", alias="tipo_raices")
    particularities: str = Field(default="", alias="particularidades")
    curiosities: str = Field(default="", alias="curiosidades")
    estimated_longevity: str = Field(default="", alias="longevidad_estimada")
    extended_explanation: str = Field(default="", alias="explicacion_botanica_extensa")


class AnalysisResult(StoredModel):
    """Structured assessment returned by the analysis model."""

    identification: PlantIdentification = Field(alias="identificacion")
    health: PlantHealth = Field(alias="salud")
    suggested_measures: PlantMeasures = Field(alias="medidas_sugeridas")
    transplant_study: TransplantStudy | None = Field(default=None, alias="estudio_trasplante")
    care: PlantCare = Field(alias="cuidados")
    botanical_profile: BotanicalProfile = Field(default_factory=BotanicalProfile, alias="ficha_botanica")


# ── Event history entries ───────────────────────────────────────────────────


class DatedImage(StoredModel):
    url: str = Field(min_length=1)
    captured_at: UtcDatetime = Field(alias="fecha")


class FertilizingEntry(StoredModel):
    timestamp: UtcDatetime = Field(alias="fecha")
    kind: FertilizerTypeEnum = Field(default=FertilizerTypeEnum.liquid, alias="tipo")


class MoistureEntry(StoredModel):
    timestamp: UtcDatetime = Field(alias="fecha")
    value: int = Field(alias="valor", ge=0, le=10)
    source_image: str | None = Field(default=None, alias="img")


# ── Aggregate ───────────────────────────────────────────────────────────────


class PlantRecord(StoredModel):
    id: str = Field(min_length=1)
    location: str = Field(default="No location", alias="ubicacion")
    identification: PlantIdentification = Field(alias="identificacion")
    health: PlantHealth = Field(alias="salud")
    suggested_measures: PlantMeasures = Field(alias="medidas_sugeridas")
    user_measures: PlantMeasures | None = Field(default=None, alias="medidas_usuario")
    transplant_study: TransplantStudy | None = Field(default=None, alias="estudio_trasplante")
    care: PlantCare = Field(alias="cuidados")
    botanical_profile: BotanicalProfile = Field(default_factory=BotanicalProfile, alias="ficha_botanica")
    images: list[DatedImage] = Field(default_factory=list)
    watering_history: list[UtcDatetime] = Field(default_factory=list, alias="historial_riego")
    fertilizing_history: list[FertilizingEntry] = Field(default_factory=list, alias="historial_abono")
    moisture_history: list[MoistureEntry] = Field(default_factory=list, alias="historial_hidrometria")
    created_at: UtcDatetime = Field(alias="fecha_creacion")

    def to_stored(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PlantCollection(StoredModel):
    """Envelope written to the slot; a bare list is the unversioned layout."""

    schema_version: int = SCHEMA_VERSION
    plants: list[PlantRecord] = Field(default_factory=list)
