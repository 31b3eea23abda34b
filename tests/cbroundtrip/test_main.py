from contextlib import contextmanager
from pathlib import Path
from unittest import mock

import pytest
import yaml
from couchbase.exceptions import InvalidArgumentException  # type: ignore

from cbroundtrip.airline import SAMPLE_AIRLINE
from cbroundtrip.exceptions import AuthenticationError, DocumentMissingError
from cbroundtrip.main import process_cli, run_job, run_round_trip


@pytest.fixture()
def credentials_file(tmp_path) -> Path:
    data = {
        "cb_host": "localhost",
        "cb_user": "Administrator",
        "cb_password": "password",
    }
    file = tmp_path / "config.yaml"
    with file.open("w") as f:
        yaml.dump(data, f)
    return file


def test_process_cli_defaults():
    args = process_cli([])
    assert args.credentials_file == Path("config.yaml")
    assert args.log_dir is None
    assert args.metrics_dir is None
    assert args.json is False


def test_process_cli_all_args(tmp_path):
    args = process_cli(
        ["-c", "creds.yaml", "-l", str(tmp_path), "-m", str(tmp_path), "--json"]
    )
    assert args.credentials_file == Path("creds.yaml")
    assert args.log_dir == tmp_path
    assert args.metrics_dir == tmp_path
    assert args.json is True


def session_for(collection):
    @contextmanager
    def fake_session(config):
        yield mock.Mock()

    return (
        mock.patch("cbroundtrip.main.cluster_session", fake_session),
        mock.patch("cbroundtrip.main.get_collection", return_value=collection),
    )


def test_run_job(cluster_config, fake_collection):
    session, get_collection = session_for(fake_collection)
    with session, get_collection as gc:
        assert run_job(cluster_config) == SAMPLE_AIRLINE
    assert gc.call_args.args[1:] == ("travel-sample", "_default", "_default")


def test_run_round_trip_success(credentials_file, fake_collection, tmp_path, capsys):
    session, get_collection = session_for(fake_collection)
    metrics_dir = tmp_path / "metrics"
    with session, get_collection, pytest.raises(SystemExit) as excinfo:
        run_round_trip(["-c", str(credentials_file), "-m", str(metrics_dir)])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == repr(SAMPLE_AIRLINE)
    metrics = (metrics_dir / "round_trip_metrics.prom").read_text()
    assert "round_trip_success_count_total 1.0" in metrics
    assert "round_trip_failure_count_total 0.0" in metrics


def test_run_round_trip_json(credentials_file, fake_collection, capsys):
    session, get_collection = session_for(fake_collection)
    with session, get_collection, pytest.raises(SystemExit) as excinfo:
        run_round_trip(["-c", str(credentials_file), "--json"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == SAMPLE_AIRLINE.to_json()


def test_run_round_trip_writes_log(credentials_file, fake_collection, tmp_path):
    session, get_collection = session_for(fake_collection)
    log_dir = tmp_path / "logs"
    with session, get_collection, pytest.raises(SystemExit):
        run_round_trip(["-c", str(credentials_file), "-l", str(log_dir)])
    logs = list(log_dir.glob("round_trip-*.log"))
    assert len(logs) == 1
    assert "Upserting airline_10" in logs[0].read_text()


def test_run_round_trip_auth_failure(credentials_file, tmp_path, capsys):
    metrics_dir = tmp_path / "metrics"
    with (
        mock.patch(
            "cbroundtrip.main.run_job",
            side_effect=AuthenticationError("rejected"),
        ),
        pytest.raises(SystemExit) as excinfo,
    ):
        run_round_trip(["-c", str(credentials_file), "-m", str(metrics_dir)])
    assert excinfo.value.code == 1
    # nothing is printed to stdout when the round trip fails
    assert capsys.readouterr().out == ""
    metrics = (metrics_dir / "round_trip_metrics.prom").read_text()
    assert "round_trip_failure_count_total 1.0" in metrics


def test_run_round_trip_read_failure(credentials_file, capsys):
    with (
        mock.patch(
            "cbroundtrip.main.run_job",
            side_effect=DocumentMissingError("airline_10 not found"),
        ),
        pytest.raises(SystemExit) as excinfo,
    ):
        run_round_trip(["-c", str(credentials_file)])
    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""


def test_run_round_trip_missing_credentials(tmp_path):
    with (
        mock.patch("cbroundtrip.main.run_job") as run_job_mock,
        pytest.raises(SystemExit) as excinfo,
    ):
        run_round_trip(["-c", str(tmp_path / "missing.yaml")])
    assert excinfo.value.code == 1
    run_job_mock.assert_not_called()


@pytest.mark.parametrize(
    "content", ["cb_host: [unclosed\n", "- cb_host\n- cb_user\n"]
)
def test_run_round_trip_malformed_credentials(tmp_path, content):
    file = tmp_path / "config.yaml"
    file.write_text(content)
    metrics_dir = tmp_path / "metrics"
    with (
        mock.patch("cbroundtrip.main.run_job") as run_job_mock,
        pytest.raises(SystemExit) as excinfo,
    ):
        run_round_trip(["-c", str(file), "-m", str(metrics_dir)])
    assert excinfo.value.code == 1
    run_job_mock.assert_not_called()
    metrics = (metrics_dir / "round_trip_metrics.prom").read_text()
    assert "round_trip_failure_count_total 1.0" in metrics


def test_run_round_trip_authenticator_rejects_config(credentials_file, tmp_path):
    metrics_dir = tmp_path / "metrics"
    with (
        mock.patch(
            "cbroundtrip.connector.PasswordAuthenticator",
            side_effect=InvalidArgumentException(message="The password must be a str."),
        ),
        pytest.raises(SystemExit) as excinfo,
    ):
        run_round_trip(["-c", str(credentials_file), "-m", str(metrics_dir)])
    assert excinfo.value.code == 1
    metrics = (metrics_dir / "round_trip_metrics.prom").read_text()
    assert "round_trip_failure_count_total 1.0" in metrics


def test_run_round_trip_unexpected_error_not_blamed_on_credentials(
    credentials_file, caplog
):
    with (
        mock.patch("cbroundtrip.main.run_job", side_effect=ValueError("boom")),
        pytest.raises(ValueError, match="boom"),
    ):
        run_round_trip(["-c", str(credentials_file)])
    assert "Invalid credentials file" not in caplog.text
