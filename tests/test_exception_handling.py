from __future__ import annotations

import logging

import pytest

from tmescore.pipeline import report


def test_safe_step_expected_error_warns_and_continues(caplog):
    caplog.set_level(logging.WARNING)
    skipped: list[str] = []

    def _raise():
        raise ValueError("groups have sizes 0 (True) and 4 (False)")

    val = report._safe_step(
        _raise,
        logger=logging.getLogger("test"),
        what="Response comparison",
        term="IG_score",
        skipped=skipped,
    )
    assert val is None
    assert skipped == ["Response comparison:IG_score"]
    assert "Response comparison skipped" in caplog.text
    assert "IG_score" in caplog.text


def test_safe_step_returns_value():
    assert (
        report._safe_step(
            lambda: 3, logger=logging.getLogger("test"), what="x", term="y", skipped=[]
        )
        == 3
    )


def test_safe_step_unexpected_error_propagates():
    def _raise_runtime():
        raise RuntimeError("unexpected")

    with pytest.raises(RuntimeError, match="unexpected"):
        report._safe_step(
            _raise_runtime,
            logger=logging.getLogger("test"),
            what="Survival analysis",
            term="IG_score",
            skipped=[],
        )
