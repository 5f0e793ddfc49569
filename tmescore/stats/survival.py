"""Overall survival: record derivation, median split, log-rank and Cox."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter, KaplanMeierFitter
from lifelines.exceptions import ConvergenceError
from lifelines.statistics import logrank_test

from tmescore.records import FollowUpRecord, PatientRecord, SurvivalRecord

logger = logging.getLogger(__name__)

DEAD_LABELS = frozenset({"dead", "deceased"})
MIN_GROUP_SIZE = 5


def build_survival(
    patients: Iterable[PatientRecord],
    follow_ups: Iterable[FollowUpRecord] = (),
) -> list[SurvivalRecord]:
    """Derive one overall-survival record per patient.

    The event is death (vital status or a recorded days_to_death). Time is the
    latest days_to_death for events, else the latest days_to_last_followup
    across the patient row and all follow-up rows. Patients without a positive
    time are dropped.
    """
    rows: dict[str, list[PatientRecord | FollowUpRecord]] = {}
    for rec in patients:
        rows.setdefault(rec.patient_id, []).append(rec)
    for fu in follow_ups:
        if fu.patient_id in rows:
            rows[fu.patient_id].append(fu)

    out: list[SurvivalRecord] = []
    for pid, recs in rows.items():
        death_days = [r.days_to_death for r in recs if r.days_to_death is not None]
        dead = bool(death_days) or any(
            (r.vital_status or "").strip().lower() in DEAD_LABELS for r in recs
        )
        if dead:
            time = max(death_days) if death_days else None
        else:
            fu_days = [r.days_to_last_followup for r in recs if r.days_to_last_followup is not None]
            time = max(fu_days) if fu_days else None
        if time is None or time <= 0:
            continue
        out.append(SurvivalRecord(patient_id=pid, time_days=float(time), event=dead))
    return out


@dataclass(frozen=True)
class SurvivalAnalysis:
    """Median-split survival comparison of one score."""

    table: pd.DataFrame
    summary: dict[str, Any] = field(default_factory=dict)


def _median_survival(time: np.ndarray, event: np.ndarray) -> float:
    kmf = KaplanMeierFitter()
    kmf.fit(time, event)
    med = kmf.median_survival_time_
    return float(med) if med is not None and np.isfinite(med) else float("nan")


def _cox_hazard_ratio(table: pd.DataFrame) -> tuple[float, float]:
    cox_df = table[["time_days", "event", "score"]].astype(float)
    cph = CoxPHFitter()
    try:
        cph.fit(cox_df, duration_col="time_days", event_col="event")
    except ConvergenceError as exc:
        logger.warning("Cox model did not converge: %s", exc)
        return float("nan"), float("nan")
    return float(np.exp(cph.params_["score"])), float(cph.summary.loc["score", "p"])


def survival_by_median(
    survival: Iterable[SurvivalRecord] | pd.DataFrame,
    scores: pd.Series,
    *,
    label: str = "score",
    min_group_size: int = MIN_GROUP_SIZE,
) -> SurvivalAnalysis:
    """Split patients at the median score and compare overall survival."""
    if isinstance(survival, pd.DataFrame):
        surv = survival.copy()
    else:
        surv = pd.DataFrame(
            [
                {"patient_id": r.patient_id, "time_days": r.time_days, "event": r.event}
                for r in survival
            ],
            columns=["patient_id", "time_days", "event"],
        )
    score_df = pd.DataFrame(
        {"patient_id": scores.index.astype(str), "score": scores.to_numpy(dtype=float)}
    )
    table = surv.merge(score_df, on="patient_id", how="inner", validate="one_to_one")
    table = table[np.isfinite(table["score"].to_numpy(dtype=float))].reset_index(drop=True)

    threshold = float(table["score"].median()) if len(table) else float("nan")
    table["group"] = np.where(table["score"] > threshold, "High", "Low")
    high = table["group"] == "High"
    n_high = int(high.sum())
    n_low = int((~high).sum())
    if n_high < int(min_group_size) or n_low < int(min_group_size):
        raise ValueError(
            f"Survival split for '{label}' too small: High={n_high}, Low={n_low}, "
            f"need {min_group_size} each."
        )

    t = table["time_days"].to_numpy(dtype=float)
    e = table["event"].to_numpy(dtype=bool)
    h = high.to_numpy()
    lr = logrank_test(t[h], t[~h], e[h], e[~h])
    hr, cox_p = _cox_hazard_ratio(table)

    summary = {
        "term": label,
        "n": int(len(table)),
        "n_events": int(e.sum()),
        "median_score": threshold,
        "n_high": n_high,
        "n_low": n_low,
        "logrank_p": float(lr.p_value),
        "median_os_high_days": _median_survival(t[h], e[h]),
        "median_os_low_days": _median_survival(t[~h], e[~h]),
        "cox_hr_per_unit": hr,
        "cox_p": cox_p,
    }
    logger.info(
        "Survival %s: n=%d events=%d logrank p=%.4g",
        label,
        summary["n"],
        summary["n_events"],
        summary["logrank_p"],
    )
    return SurvivalAnalysis(table=table, summary=summary)
