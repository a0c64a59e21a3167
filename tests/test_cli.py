"""
Tests for the batch scoring command line.
"""

import json

import pandas as pd
import pytest
import yaml

from membervault.run import EXPORT_FILES, load_exports, main


@pytest.fixture
def exports_dir(tmp_path, sample_data):
    """Sample community written as CSV table exports."""
    data_dir = tmp_path / "exports"
    data_dir.mkdir()
    sample_data.members.to_csv(data_dir / EXPORT_FILES["members"], index=False)
    sample_data.activities.to_csv(data_dir / EXPORT_FILES["activities"], index=False)
    sample_data.metrics.to_csv(data_dir / EXPORT_FILES["metrics"], index=False)
    sample_data.payments.to_csv(data_dir / EXPORT_FILES["payments"], index=False)
    return data_dir


def _args(data_dir, logs_dir, *extra):
    return [str(data_dir), "--now", "2024-06-01T12:00:00Z", "--logs-dir", str(logs_dir), *extra]


class TestLoadExports:
    """Tests for reading CSV exports."""

    def test_reads_all_tables(self, exports_dir):
        """All four exports load with UTC timestamps."""
        frames = load_exports(exports_dir)

        assert set(frames) == set(EXPORT_FILES)
        assert len(frames["members"]) == 100
        assert str(frames["activities"]["created_at"].dt.tz) == "UTC"

    def test_missing_export(self, exports_dir):
        """A missing file is reported by path."""
        (exports_dir / EXPORT_FILES["payments"]).unlink()

        with pytest.raises(FileNotFoundError, match="payments.csv"):
            load_exports(exports_dir)


class TestMain:
    """End-to-end CLI runs."""

    def test_successful_run(self, exports_dir, tmp_path, capsys):
        """Scores, writes predictions and a run log."""
        logs_dir = tmp_path / "logs"
        output = tmp_path / "predictions.csv"

        code = main(_args(exports_dir, logs_dir, "--output", str(output)))

        assert code == 0
        out = capsys.readouterr().out
        assert "Members scored: 100" in out

        predictions = pd.read_csv(output)
        assert len(predictions) == 100
        assert predictions["churn_score"].between(0, 100).all()

        logs = list(logs_dir.glob("run_*.json"))
        assert len(logs) == 1
        assert json.loads(logs[0].read_text())["status"] == "OK"

    def test_cli_matches_in_memory_scoring(self, exports_dir, tmp_path, sample_data, now):
        """CSV round trip does not change any score."""
        from membervault import ChurnScorer

        output = tmp_path / "predictions.csv"
        main(_args(exports_dir, tmp_path / "logs", "--output", str(output)))

        expected = ChurnScorer().score_batch(
            sample_data.members, sample_data.activities,
            sample_data.metrics, sample_data.payments, now=now,
        ).df.set_index("member_id")["churn_score"]
        written = pd.read_csv(output, dtype={"member_id": str}).set_index("member_id")["churn_score"]

        pd.testing.assert_series_equal(
            written.sort_index(), expected.sort_index(), check_dtype=False
        )

    def test_min_level_filters_output(self, exports_dir, tmp_path):
        """--min-level limits the written rows."""
        output = tmp_path / "critical.csv"

        main(_args(exports_dir, tmp_path / "logs", "--min-level", "critical",
                   "--output", str(output)))

        predictions = pd.read_csv(output)
        assert (predictions["risk_level"] == "critical").all()

    def test_config_file(self, exports_dir, tmp_path):
        """--config loads a YAML override."""
        config_path = tmp_path / "alerts.yaml"
        config_path.write_text(yaml.safe_dump({"version": "1.0.0-test", "alert_threshold": 50}))
        logs_dir = tmp_path / "logs"

        code = main(_args(exports_dir, logs_dir, "--config", str(config_path)))

        assert code == 0
        log = json.loads(next(logs_dir.glob("run_*.json")).read_text())
        assert log["config"]["version"] == "1.0.0-test"
        assert log["config"]["alert_threshold"] == 50

    def test_missing_export_fails(self, exports_dir, tmp_path, capsys):
        """Errors return 1 and are logged."""
        (exports_dir / EXPORT_FILES["metrics"]).unlink()
        logs_dir = tmp_path / "logs"

        code = main(_args(exports_dir, logs_dir))

        assert code == 1
        assert "ERROR:" in capsys.readouterr().out
        log = json.loads(next(logs_dir.glob("run_*.json")).read_text())
        assert log["status"] == "ERROR"

    def test_list_runs(self, exports_dir, tmp_path, capsys):
        """--list shows previous runs."""
        logs_dir = tmp_path / "logs"
        main(_args(exports_dir, logs_dir))
        capsys.readouterr()

        code = main(["--list", "--logs-dir", str(logs_dir)])

        assert code == 0
        assert "run_" in capsys.readouterr().out

    def test_list_without_runs(self, tmp_path, capsys):
        """--list on an empty log directory."""
        code = main(["--list", "--logs-dir", str(tmp_path / "empty")])

        assert code == 0
        assert "No runs found." in capsys.readouterr().out

    def test_no_data_dir(self, tmp_path, capsys):
        """Without a data directory, print help and fail."""
        assert main(["--logs-dir", str(tmp_path)]) == 1
