"""TNBC cohort assembly: barcodes, clinical readers and explicit joins."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Sequence, TypeVar

import numpy as np
import pandas as pd

from tmescore.pipeline.io import pick_column, read_table
from tmescore.records import (
    DeconvolutionRecord,
    FollowUpRecord,
    PatientRecord,
    ResponseRecord,
    TreatmentRecord,
    parse_float,
    parse_text,
    record_to_row,
)

logger = logging.getLogger(__name__)

_BARCODE_RE = re.compile(r"^TCGA-[A-Z0-9]{2}-[A-Z0-9]{4}")

PATIENT_ID_COLUMNS: tuple[str, ...] = (
    "bcr_patient_barcode",
    "patient",
    "TCGA Participant Barcode",
    "submitter_id",
    "case_submitter_id",
    "patient_id",
)

RESPONDER_LABELS: frozenset[str] = frozenset({"complete response", "partial response"})
NON_RESPONDER_LABELS: frozenset[str] = frozenset(
    {"stable disease", "clinical progressive disease", "progressive disease"}
)

DECONVOLUTION_NON_FRACTION_COLUMNS: frozenset[str] = frozenset(
    {"tcga study", "immune subtype", "tcga subtype", "ocurrence"}
)

R = TypeVar("R")


def normalize_barcode(value: Any) -> str:
    """Map any TCGA barcode (patient, sample or aliquot) to `TCGA-XX-XXXX`."""
    text = str(value).strip().upper()
    if not _BARCODE_RE.match(text):
        raise ValueError(f"Not a TCGA barcode: '{value}'")
    return "-".join(text.split("-")[:3])


def sample_type_code(barcode: str) -> str:
    """Two-digit sample type of a sample/aliquot barcode (`01` = primary tumor)."""
    parts = str(barcode).strip().upper().split("-")
    if len(parts) < 4 or len(parts[3]) < 2 or not parts[3][:2].isdigit():
        raise ValueError(f"Barcode '{barcode}' has no sample type field.")
    return parts[3][:2]


def _patient_ids(frame: pd.DataFrame, id_col: str) -> list[str | None]:
    out: list[str | None] = []
    for raw in frame[id_col].tolist():
        try:
            out.append(normalize_barcode(raw))
        except ValueError:
            out.append(None)
    return out


def read_tnbc_patients(path: str | Path, *, sheet_name: str | int | None = None) -> list[str]:
    """TNBC participant barcodes in file order, de-duplicated."""
    frame = read_table(path, sheet_name=sheet_name)
    id_col = pick_column(frame, PATIENT_ID_COLUMNS)
    seen: dict[str, None] = {}
    for pid in _patient_ids(frame, id_col):
        if pid is not None:
            seen.setdefault(pid, None)
    if not seen:
        raise ValueError(f"No TCGA barcodes found in column '{id_col}' of {path}.")
    logger.info("Loaded %d TNBC patients from %s", len(seen), Path(path).name)
    return list(seen)


def read_deconvolution(
    path: str | Path,
    *,
    cell_types: Sequence[str] | None = None,
    sheet_name: str | int | None = None,
) -> list[DeconvolutionRecord]:
    """Deconvolution rows; fractions come from `cell_types` or every numeric column."""
    frame = read_table(path, sheet_name=sheet_name)
    id_col = pick_column(frame, ("TCGA Participant Barcode",) + PATIENT_ID_COLUMNS)

    if cell_types is None:
        cols = [
            str(c)
            for c in frame.columns
            if c != id_col
            and str(c).strip().lower() not in DECONVOLUTION_NON_FRACTION_COLUMNS
            and pd.api.types.is_numeric_dtype(frame[c])
        ]
    else:
        missing = [c for c in cell_types if c not in frame.columns]
        if missing:
            raise KeyError(f"Cell-type columns missing from {path}: {missing}")
        cols = [str(c) for c in cell_types]
    if not cols:
        raise ValueError(f"No numeric cell-type columns found in {path}.")

    numeric = frame[cols].apply(pd.to_numeric, errors="coerce")
    records: list[DeconvolutionRecord] = []
    for pid, (_, row) in zip(_patient_ids(frame, id_col), numeric.iterrows()):
        if pid is None:
            continue
        fractions = {c: float(row[c]) for c in cols if np.isfinite(row[c])}
        records.append(DeconvolutionRecord(patient_id=pid, cell_fractions=fractions))
    return records


def read_patients(path: str | Path) -> list[PatientRecord]:
    frame = read_table(path)
    id_col = pick_column(frame, PATIENT_ID_COLUMNS)
    vital = pick_column(frame, ["vital_status"], required=False)
    dtd = pick_column(frame, ["days_to_death"], required=False)
    dlfu = pick_column(frame, ["days_to_last_followup", "days_to_last_follow_up"], required=False)
    age = pick_column(
        frame, ["age_at_initial_pathologic_diagnosis", "age_at_diagnosis"], required=False
    )
    stage = pick_column(
        frame, ["stage_event_pathologic_stage", "ajcc_pathologic_stage"], required=False
    )

    def _get(row: pd.Series, col: str | None) -> Any:
        return None if col is None else row[col]

    records: list[PatientRecord] = []
    for pid, (_, row) in zip(_patient_ids(frame, id_col), frame.iterrows()):
        if pid is None:
            continue
        records.append(
            PatientRecord(
                patient_id=pid,
                vital_status=parse_text(_get(row, vital)),
                days_to_death=parse_float(_get(row, dtd)),
                days_to_last_followup=parse_float(_get(row, dlfu)),
                age_at_diagnosis=parse_float(_get(row, age)),
                stage=parse_text(_get(row, stage)),
            )
        )
    return records


def read_treatments(path: str | Path) -> list[TreatmentRecord]:
    frame = read_table(path)
    id_col = pick_column(frame, PATIENT_ID_COLUMNS)
    drug = pick_column(frame, ["drug_name"], required=False)
    therapy = pick_column(frame, ["therapy_types", "therapy_type"], required=False)
    response = pick_column(frame, ["measure_of_response"])

    records: list[TreatmentRecord] = []
    for pid, (_, row) in zip(_patient_ids(frame, id_col), frame.iterrows()):
        if pid is None:
            continue
        records.append(
            TreatmentRecord(
                patient_id=pid,
                drug_name=None if drug is None else parse_text(row[drug]),
                therapy_type=None if therapy is None else parse_text(row[therapy]),
                measure_of_response=parse_text(row[response]),
            )
        )
    return records


def read_follow_ups(path: str | Path) -> list[FollowUpRecord]:
    frame = read_table(path)
    id_col = pick_column(frame, PATIENT_ID_COLUMNS)
    vital = pick_column(frame, ["vital_status"], required=False)
    dtd = pick_column(frame, ["days_to_death"], required=False)
    dlfu = pick_column(frame, ["days_to_last_followup", "days_to_last_follow_up"], required=False)

    records: list[FollowUpRecord] = []
    for pid, (_, row) in zip(_patient_ids(frame, id_col), frame.iterrows()):
        if pid is None:
            continue
        records.append(
            FollowUpRecord(
                patient_id=pid,
                vital_status=None if vital is None else parse_text(row[vital]),
                days_to_death=None if dtd is None else parse_float(row[dtd]),
                days_to_last_followup=None if dlfu is None else parse_float(row[dlfu]),
            )
        )
    return records


def filter_to_patients(records: Iterable[R], patients: Iterable[str]) -> list[R]:
    keep = set(patients)
    return [r for r in records if getattr(r, "patient_id") in keep]


def classify_response(measure_of_response: str | None) -> bool | None:
    """True for CR/PR, False for SD/PD, None when unknown."""
    if measure_of_response is None:
        return None
    label = str(measure_of_response).strip().lower()
    if label in RESPONDER_LABELS:
        return True
    if label in NON_RESPONDER_LABELS:
        return False
    return None


def best_responses(treatments: Iterable[TreatmentRecord]) -> list[ResponseRecord]:
    """Collapse treatment rows to one best response per patient.

    A patient is a responder if any row is a responder, a non-responder if
    rows are known and none responded, and is dropped if no row is known.
    """
    by_patient: dict[str, list[tuple[str, bool]]] = {}
    for rec in treatments:
        flag = classify_response(rec.measure_of_response)
        if flag is None:
            continue
        by_patient.setdefault(rec.patient_id, []).append((str(rec.measure_of_response), flag))

    out: list[ResponseRecord] = []
    for pid, rows in by_patient.items():
        hits = [label for label, flag in rows if flag]
        if hits:
            label = "Complete Response" if any(h.lower() == "complete response" for h in hits) else hits[0]
            out.append(ResponseRecord(patient_id=pid, response=label, responder=True))
        else:
            out.append(ResponseRecord(patient_id=pid, response=rows[0][0], responder=False))
    return out


def _to_frame(rows: Iterable[Any] | pd.DataFrame, key: str) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        frame = rows.copy()
    else:
        items = [record_to_row(r) for r in rows]
        frame = pd.DataFrame(items) if items else pd.DataFrame(columns=[key])
    if key not in frame.columns:
        raise KeyError(f"Join key '{key}' not found in columns: {list(frame.columns)}")
    return frame


def join_records(
    left: Iterable[Any] | pd.DataFrame,
    right: Iterable[Any] | pd.DataFrame,
    *,
    key: str = "patient_id",
    how: str = "inner",
    validate: bool = True,
) -> pd.DataFrame:
    """Join two record collections on an explicit key.

    `how` is `"inner"` or `"left"`. With `validate`, the right side must have
    unique keys so the join never multiplies left rows.
    """
    if how not in {"inner", "left"}:
        raise ValueError(f"Unsupported join kind '{how}'. Use 'inner' or 'left'.")
    lf = _to_frame(left, key)
    rf = _to_frame(right, key)
    if validate and rf[key].duplicated().any():
        dup = rf.loc[rf[key].duplicated(), key].astype(str).unique().tolist()
        raise ValueError(f"Right side of join has duplicate '{key}' values: {dup[:5]}")
    shared = sorted((set(lf.columns) & set(rf.columns)) - {key})
    if shared:
        raise ValueError(f"Both sides of join define columns {shared}; rename one side first.")
    return lf.merge(rf, on=key, how=how, sort=False)
