"""Tests for the command-line runner."""

import json
import sys

import pytest
from loguru import logger

from source_selection.cli import main


@pytest.fixture(autouse=True)
def _restore_loguru():
    # main() replaces the default loguru handlers when not in debug mode
    yield
    logger.remove()
    logger.add(lambda msg: sys.stderr.write(msg))


@pytest.fixture
def sources_file(tmp_path):
    payload = [
        {
            "source": {"pmid": "1", "title": "Metformin and kidney function", "abstract": "Cohort study"},
            "relevanceScore": 92,
            "sourceType": "pubmed",
        },
        {
            "source": {"title": "Diet trial", "nctId": "NCT00001", "startDate": "2020-01-01"},
            "relevanceScore": 81,
            "sourceType": "clinicaltrials",
        },
        {
            "source": {"title": "Low relevance page", "text": "unrelated"},
            "relevanceScore": 10,
            "sourceType": "exa",
        },
    ]
    path = tmp_path / "ranked.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestCli:
    def test_prints_synthesis_block(self, sources_file, capsys):
        assert main([str(sources_file), "--min_score", "50"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("# SELECTED RESEARCH SOURCES (2 sources)")
        assert "### [1] Unknown et al. (). Metformin and kidney function. PubMed." in out
        assert "ClinicalTrials.gov ID: NCT00001. Started: 2020." in out
        assert "Low relevance page" not in out

    def test_json_output(self, sources_file, capsys):
        assert main([str(sources_file), "--json", "--token-budget", "1000"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["selectedCount"] == 3
        assert result["tokenBudget"] == 1000
        assert result["selectedSources"][0]["relevanceScore"] == 92

    def test_config_file(self, sources_file, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"baseLimit": 1, "extendedLimit": 1}), encoding="utf-8")

        assert main([str(sources_file), "--config", str(config), "--json"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert result["selectedCount"] == 1

    def test_invalid_config_exits_2(self, sources_file, capsys):
        assert main([str(sources_file), "--similarity_threshold", "3"]) == 2
        assert "Invalid selection configuration" in capsys.readouterr().err

    def test_missing_file_exits_2(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json")]) == 2

    def test_bad_source_data_exits_2(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"source": {}, "relevanceScore": 500, "sourceType": "pubmed"}]))

        assert main([str(path)]) == 2
        assert "Invalid ranked source data" in capsys.readouterr().err
