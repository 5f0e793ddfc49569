from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from tmescore.core.types import InvalidExpressionError
from tmescore.expression import (
    drop_duplicate_genes,
    log_transform,
    prepare_expression,
    read_tpm_matrix,
    select_primary_tumor,
)

A_TUMOR = "TCGA-A1-A0SK-01A-12R-A084-07"
A_TUMOR_2 = "TCGA-A1-A0SK-01A-99R-A084-07"
A_NORMAL = "TCGA-A1-A0SK-11A-21R-A084-07"
B_TUMOR = "TCGA-BH-A0BG-01A-11R-A084-07"


def _write_tpm(path: Path) -> None:
    frame = pd.DataFrame(
        {
            "gene": ["IGKC", "ACTB", "ACTB", "CD8A"],
            A_TUMOR_2: [1.0, 2.0, 9.0, 0.0],
            A_TUMOR: [3.0, 7.0, 9.0, 1.0],
            A_NORMAL: [0.0, 5.0, 9.0, 0.0],
            B_TUMOR: [15.0, 0.0, 9.0, 3.0],
        }
    )
    frame.to_csv(path, sep="\t", index=False)


def test_read_tpm_matrix(tmp_path: Path):
    path = tmp_path / "tpm.tsv"
    _write_tpm(path)
    expr = read_tpm_matrix(path)
    assert expr.shape == (4, 4)
    assert expr.index.tolist() == ["IGKC", "ACTB", "ACTB", "CD8A"]


def test_read_tpm_matrix_rejects_non_numeric(tmp_path: Path):
    path = tmp_path / "tpm.tsv"
    path.write_text("gene\tS1\nIGKC\t1.0\nACTB\thigh\n", encoding="utf-8")
    with pytest.raises(InvalidExpressionError, match="Non-numeric"):
        read_tpm_matrix(path)
    with pytest.raises(FileNotFoundError):
        read_tpm_matrix(tmp_path / "missing.tsv")


def test_drop_duplicate_genes_keeps_first():
    expr = pd.DataFrame({"S": [1.0, 2.0, 3.0]}, index=["A", "B", "A"])
    out = drop_duplicate_genes(expr)
    assert out.index.tolist() == ["A", "B"]
    assert out.loc["A", "S"] == 1.0


def test_select_primary_tumor_one_column_per_patient(tmp_path: Path):
    path = tmp_path / "tpm.tsv"
    _write_tpm(path)
    out = select_primary_tumor(read_tpm_matrix(path))
    assert out.columns.tolist() == ["TCGA-A1-A0SK", "TCGA-BH-A0BG"]
    # first aliquot in sorted barcode order wins
    assert out["TCGA-A1-A0SK"].tolist() == [3.0, 7.0, 9.0, 1.0]

    only_normal = pd.DataFrame({A_NORMAL: [1.0]}, index=["G"])
    with pytest.raises(InvalidExpressionError, match="sample type '01'"):
        select_primary_tumor(only_normal)


def test_log_transform():
    expr = pd.DataFrame({"S": [0.0, 1.0, 3.0]}, index=list("abc"))
    out = log_transform(expr)
    np.testing.assert_allclose(out["S"].to_numpy(), [0.0, 1.0, 2.0])
    with pytest.raises(InvalidExpressionError, match="non-negative"):
        log_transform(pd.DataFrame({"S": [-1.0]}))


def test_prepare_expression_end_to_end(tmp_path: Path):
    path = tmp_path / "tpm.tsv"
    _write_tpm(path)
    expr = prepare_expression(path)
    assert expr.shape == (3, 2)
    assert expr.index.tolist() == ["IGKC", "ACTB", "CD8A"]
    assert np.isclose(expr.loc["IGKC", "TCGA-BH-A0BG"], 4.0)
