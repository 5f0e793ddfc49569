"""Typed per-patient records passed between pipeline stages."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any


def parse_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def parse_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    if text == "" or text.lower() in {"nan", "na", "none", "[not available]", "[not applicable]"}:
        return None
    return text


@dataclass(frozen=True)
class PatientRecord:
    patient_id: str
    vital_status: str | None = None
    days_to_death: float | None = None
    days_to_last_followup: float | None = None
    age_at_diagnosis: float | None = None
    stage: str | None = None


@dataclass(frozen=True)
class TreatmentRecord:
    patient_id: str
    drug_name: str | None = None
    therapy_type: str | None = None
    measure_of_response: str | None = None


@dataclass(frozen=True)
class FollowUpRecord:
    patient_id: str
    vital_status: str | None = None
    days_to_death: float | None = None
    days_to_last_followup: float | None = None


@dataclass(frozen=True)
class DeconvolutionRecord:
    """Cell-type fractions estimated for one participant."""

    patient_id: str
    cell_fractions: dict[str, float] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        return {"patient_id": self.patient_id, **self.cell_fractions}


@dataclass(frozen=True)
class SurvivalRecord:
    patient_id: str
    time_days: float
    event: bool


@dataclass(frozen=True)
class ResponseRecord:
    patient_id: str
    response: str | None
    responder: bool | None


def record_to_row(record: Any) -> dict[str, Any]:
    """Flatten a record into a dict row; nested cell fractions become columns."""
    if isinstance(record, DeconvolutionRecord):
        return record.to_row()
    return asdict(record)
