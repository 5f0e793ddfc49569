import numpy as np
import pandas as pd
import pytest

from tmescore.records import FollowUpRecord, PatientRecord, SurvivalRecord
from tmescore.stats import (
    bh_fdr,
    build_survival,
    cliffs_delta,
    compare_groups,
    correlate_with_cell_types,
    safe_correlation,
    survival_by_median,
)


def test_bh_fdr_basic_and_nan_passthrough():
    pvals = np.array([0.01, 0.02, np.nan, 0.20], dtype=float)
    qvals = bh_fdr(pvals)
    assert qvals.shape == pvals.shape
    assert qvals[2] == 1.0
    np.testing.assert_allclose(qvals[[0, 1, 3]], [0.03, 0.03, 0.2])
    with pytest.raises(ValueError, match="p-values"):
        bh_fdr(np.array([1.5]))


def test_safe_correlation_guards():
    rho, p, n = safe_correlation(np.array([1.0, 2.0]), np.array([2.0, 4.0]))
    assert np.isnan(rho) and np.isnan(p) and n == 2
    rho, _, _ = safe_correlation(np.arange(5.0), np.ones(5))
    assert np.isnan(rho)
    with pytest.raises(ValueError, match="Unsupported correlation"):
        safe_correlation(np.arange(5.0), np.arange(5.0), method="kendall")


def test_correlate_with_cell_types():
    idx = [f"P{i}" for i in range(6)]
    scores = pd.Series(np.arange(6.0), index=idx)
    fractions = pd.DataFrame(
        {
            "T Cells CD8": np.arange(6.0) * 2.0,
            "Constant": np.ones(6),
            "Macrophages M2": np.arange(6.0)[::-1],
        },
        index=idx,
    ).iloc[::-1]
    table = correlate_with_cell_types(scores, fractions).set_index("cell_type")
    assert np.isclose(table.loc["T Cells CD8", "rho"], 1.0)
    assert np.isclose(table.loc["Macrophages M2", "rho"], -1.0)
    assert np.isnan(table.loc["Constant", "rho"])
    assert table.loc["Constant", "q_value"] == 1.0
    assert (table["n"] == 6).all()
    assert set(table["method"]) == {"spearman"}


def test_cliffs_delta_and_compare_groups():
    assert cliffs_delta(np.array([1.0, 2.0]), np.array([1.0, 2.0])) == 0.0
    assert cliffs_delta(np.array([5.0, 6.0]), np.array([1.0])) == 1.0

    values = pd.Series([5.0, 6.0, 7.0, 1.0, 2.0, 3.0, 9.0], index=list("abcdefg"))
    groups = pd.Series([True, True, True, False, False, False, None], index=list("abcdefg"))
    row = compare_groups(values, groups, label="IG_score")
    assert row["term"] == "IG_score"
    assert row["n_positive"] == 3
    assert row["n_negative"] == 3
    assert row["cliffs_delta"] == 1.0
    assert 0.0 < row["p_value"] <= 1.0
    assert row["median_positive"] == 6.0

    with pytest.raises(ValueError, match="groups have sizes"):
        compare_groups(values, pd.Series([True] * 7, index=list("abcdefg")))


def test_build_survival_rules():
    patients = [
        PatientRecord("P1", vital_status="Dead", days_to_death=300.0),
        PatientRecord("P2", vital_status="Alive", days_to_last_followup=500.0),
        PatientRecord("P3", vital_status="Alive"),
        PatientRecord("P4", vital_status="Dead"),
        PatientRecord("P5", vital_status="Alive", days_to_last_followup=0.0),
    ]
    follow_ups = [
        FollowUpRecord("P2", vital_status="Alive", days_to_last_followup=800.0),
        FollowUpRecord("P4", vital_status="Dead", days_to_death=100.0),
        FollowUpRecord("P9", vital_status="Dead", days_to_death=50.0),
    ]
    out = {r.patient_id: r for r in build_survival(patients, follow_ups)}
    assert out["P1"] == SurvivalRecord("P1", 300.0, True)
    assert out["P2"] == SurvivalRecord("P2", 800.0, False)
    assert out["P4"] == SurvivalRecord("P4", 100.0, True)
    assert set(out) == {"P1", "P2", "P4"}


def _survival_cohort() -> tuple[list[SurvivalRecord], pd.Series]:
    times = [400, 150, 600, 300, 800, 250, 900, 350, 1200, 500, 700, 1000]
    events = [1, 0, 1, 1, 0, 1, 0, 1, 1, 0, 1, 0]
    ids = [f"P{i:02d}" for i in range(12)]
    records = [SurvivalRecord(pid, float(t), bool(e)) for pid, t, e in zip(ids, times, events)]
    scores = pd.Series(np.arange(12.0), index=ids)
    return records, scores


def test_survival_by_median():
    records, scores = _survival_cohort()
    res = survival_by_median(records, scores, label="IG_score")
    s = res.summary
    assert s["term"] == "IG_score"
    assert s["n"] == 12
    assert s["n_high"] == 6 and s["n_low"] == 6
    assert s["n_events"] == 7
    assert s["median_score"] == 5.5
    assert 0.0 <= s["logrank_p"] <= 1.0
    assert set(res.table["group"]) == {"High", "Low"}
    assert res.table.loc[res.table["score"] > 5.5, "group"].eq("High").all()


def test_survival_by_median_requires_group_size():
    records, scores = _survival_cohort()
    with pytest.raises(ValueError, match="too small"):
        survival_by_median(records[:6], scores, min_group_size=5)
