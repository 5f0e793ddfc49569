from __future__ import annotations

import json
from pathlib import Path

import pytest

from tmescore.signatures import (
    IG_SET_NAME,
    build_gene_sets,
    immunoglobulin_genes,
    is_immunoglobulin_gene,
    read_gene_sets,
    read_gmt,
)


def test_immunoglobulin_genes_match_segments_and_constants():
    genes = ["ACTB", "IGHG1", "IGKC", "IGLV3-21", "IGHM", "IGLON5", "IGLL1", "IGHGP", "IGHEP1", "IGFBP3"]
    assert immunoglobulin_genes(genes) == ["IGHG1", "IGKC", "IGLV3-21", "IGHM"]
    assert is_immunoglobulin_gene("ighj6")
    assert not is_immunoglobulin_gene("IGF1")


def test_build_gene_sets_puts_ig_first_and_rejects_reserved_name():
    sets = build_gene_sets(["IGKC", "CD8A", "IGHA1"], {"cd8": ["CD8A", "CD8B"]})
    assert list(sets) == [IG_SET_NAME, "cd8"]
    assert sets[IG_SET_NAME] == ["IGKC", "IGHA1"]
    with pytest.raises(ValueError, match="reserved"):
        build_gene_sets(["IGKC"], {IG_SET_NAME: ["X"]})


def test_read_gmt(tmp_path: Path):
    gmt = tmp_path / "sets.gmt"
    gmt.write_text("T_CELL\tna\tCD3E\tCD8A\n\nB_CELL\thttp://x\tMS4A1\tCD19\t\n", encoding="utf-8")
    sets = read_gmt(gmt)
    assert sets == {"T_CELL": ["CD3E", "CD8A"], "B_CELL": ["MS4A1", "CD19"]}


def test_read_gmt_rejects_malformed_and_duplicate(tmp_path: Path):
    bad = tmp_path / "bad.gmt"
    bad.write_text("ONLY_NAME\tdesc\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Malformed GMT line 1"):
        read_gmt(bad)

    dup = tmp_path / "dup.gmt"
    dup.write_text("A\td\tX\nA\td\tY\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Duplicate gene set"):
        read_gmt(dup)


def test_read_gene_sets_dispatches_on_suffix(tmp_path: Path):
    js = tmp_path / "sets.json"
    js.write_text(json.dumps({"plasma": ["JCHAIN", "MZB1"]}), encoding="utf-8")
    assert read_gene_sets(js) == {"plasma": ["JCHAIN", "MZB1"]}

    other = tmp_path / "sets.txt"
    other.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="Use .gmt or .json"):
        read_gene_sets(other)

    with pytest.raises(FileNotFoundError):
        read_gene_sets(tmp_path / "missing.gmt")
