"""Unit tests for the ClipFlow job API."""

import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from clipflow.engine import RenderResult
from clipflow.errors import OverlapError
from clipflow.models import OperationKind
from clipflow.web import create_app
from clipflow.web import routes


@pytest.fixture
def app(tmp_path):
    app = create_app(scratch_dir=tmp_path)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def clear_jobs():
    routes._jobs.clear()
    yield
    routes._jobs.clear()


@pytest.fixture
def sync_threads():
    """Run job threads inline so results are visible immediately."""

    class InlineThread:
        def __init__(self, target, daemon=None):
            self._target = target

        def start(self):
            self._target()

    with patch.object(routes.threading, "Thread", InlineThread):
        yield


CUT_JOB = {
    "input": "in.mp4",
    "output": "out.mp4",
    "operation": "cut",
    "segments": [{"start": 2, "end": 4}, {"start": 6, "end": 9}],
}


class TestSubmit:
    def test_bad_manifest(self, client):
        resp = client.post("/api/jobs", json={"input": "in.mp4"})
        assert resp.status_code == 400
        assert "must contain" in resp.get_json()["error"]

    def test_no_body(self, client):
        resp = client.post("/api/jobs")
        assert resp.status_code == 400

    @patch("clipflow.web.routes.process")
    def test_job_completes(self, mock_process, client, sync_threads):
        mock_process.return_value = RenderResult(
            output_path=Path("out.mp4"),
            operation=OperationKind.CUT,
            duration_original=10.0,
            duration_final=5.0,
            segments_kept=2,
        )
        resp = client.post("/api/jobs", json=CUT_JOB)
        assert resp.status_code == 200
        job_id = resp.get_json()["job_id"]

        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert status["status"] == "done"
        assert status["result"]["segments_kept"] == 2
        assert status["result"]["duration_final"] == 5.0

    @patch("clipflow.web.routes.process")
    def test_typed_error_reported(self, mock_process, client, sync_threads):
        mock_process.side_effect = OverlapError("Range 1-5 overlaps 4-6")
        job_id = client.post("/api/jobs", json=CUT_JOB).get_json()["job_id"]

        status = client.get(f"/api/jobs/{job_id}/status").get_json()
        assert status["status"] == "error"
        assert status["error"]["kind"] == "planning.overlap"
        assert "overlaps" in status["error"]["message"]

    @patch("clipflow.web.routes.process")
    def test_progress_stream_ends_with_result(self, mock_process, client, sync_threads):
        def fake_process(job, on_progress=None, arena=None):
            on_progress("Probing media", 0.0)
            return RenderResult(output_path=Path("out.mp4"), operation=OperationKind.CUT)

        mock_process.side_effect = fake_process
        job_id = client.post("/api/jobs", json=CUT_JOB).get_json()["job_id"]

        body = client.get(f"/api/jobs/{job_id}/progress").get_data(as_text=True)
        assert '"stage": "Probing media"' in body
        assert '"stage": "complete"' in body


class TestCancel:
    @patch("clipflow.web.routes.process")
    def test_cancel_running_job(self, mock_process, client):
        started = threading.Event()
        release = threading.Event()

        def fake_process(job, on_progress=None, arena=None):
            started.set()
            release.wait(5)
            job.cancel_token.raise_if_cancelled()
            return RenderResult(output_path=Path("out.mp4"), operation=OperationKind.CUT)

        mock_process.side_effect = fake_process
        job_id = client.post("/api/jobs", json=CUT_JOB).get_json()["job_id"]
        assert started.wait(5)

        resp = client.post(f"/api/jobs/{job_id}/cancel")
        assert resp.status_code == 200
        release.set()

        body = client.get(f"/api/jobs/{job_id}/progress").get_data(as_text=True)
        assert "cancelled" in body
        assert client.get(f"/api/jobs/{job_id}/status").get_json()["status"] == "cancelled"

    @patch("clipflow.web.routes.process")
    def test_cancel_finished_job(self, mock_process, client, sync_threads):
        mock_process.return_value = RenderResult(output_path=Path("o.mp4"), operation=OperationKind.CUT)
        job_id = client.post("/api/jobs", json=CUT_JOB).get_json()["job_id"]
        assert client.post(f"/api/jobs/{job_id}/cancel").status_code == 409


class TestUnknownJob:
    @pytest.mark.parametrize("url", ["/api/jobs/nope/status", "/api/jobs/nope/progress"])
    def test_get(self, client, url):
        assert client.get(url).status_code == 404

    def test_cancel(self, client):
        assert client.post("/api/jobs/nope/cancel").status_code == 404


class TestJobStore:
    @patch("clipflow.web.routes.process")
    def test_oldest_finished_jobs_evicted(self, mock_process, app, client, sync_threads):
        app.config["MAX_FINISHED_JOBS"] = 2
        mock_process.return_value = RenderResult(output_path=Path("o.mp4"), operation=OperationKind.CUT)
        ids = [client.post("/api/jobs", json=CUT_JOB).get_json()["job_id"] for _ in range(4)]

        assert client.get(f"/api/jobs/{ids[0]}/status").status_code == 404
        for job_id in ids[1:]:
            assert client.get(f"/api/jobs/{job_id}/status").get_json()["status"] == "done"

    def test_running_jobs_never_evicted(self):
        routes._jobs.update({
            "run": {"status": "processing"},
            "old": {"status": "done"},
            "new": {"status": "error"},
        })
        routes._evict_finished(1)
        assert list(routes._jobs) == ["run", "new"]
