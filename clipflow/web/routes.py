"""HTTP routes for submitting, watching and cancelling render jobs."""

import json
import logging
import queue
import threading

from flask import Blueprint, Response, current_app, jsonify, request

from clipflow.engine import RenderJob, process
from clipflow.errors import ClipFlowError
from clipflow.manifest import manifest_from_dict

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _evict_finished(keep: int) -> None:
    """Drop the oldest finished jobs so at most *keep* of them remain."""
    finished = [jid for jid, job in _jobs.items() if job["status"] != "processing"]
    for jid in finished[: max(len(finished) - keep, 0)]:
        del _jobs[jid]


def _result_dict(result) -> dict:
    return {
        "output_path": str(result.output_path),
        "operation": result.operation.value,
        "duration_original": result.duration_original,
        "duration_final": result.duration_final,
        "segments_kept": result.segments_kept,
        "segments_removed": result.segments_removed,
        "caption_path": str(result.caption_path) if result.caption_path else None,
    }


@bp.route("/api/jobs", methods=["POST"])
def submit_job():
    try:
        manifest = manifest_from_dict(request.get_json(silent=True))
    except (ValueError, TypeError) as e:
        return jsonify({"error": str(e)}), 400

    _evict_finished(current_app.config["MAX_FINISHED_JOBS"])
    render_job = RenderJob(manifest=manifest)
    progress_queue: queue.Queue = queue.Queue()
    job = {
        "render_job": render_job,
        "progress_queue": progress_queue,
        "status": "processing",
        "error": None,
        "result": None,
    }
    _jobs[render_job.job_id] = job
    arena = current_app.config["SCRATCH_ARENA"]

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            result = process(render_job, on_progress=on_progress, arena=arena)
            job["result"] = _result_dict(result)
            job["status"] = "done"
        except ClipFlowError as e:
            job["status"] = "cancelled" if e.kind == "cancelled" else "error"
            job["error"] = e.to_dict()
        except Exception as e:
            logger.exception("job %s crashed", render_job.job_id)
            job["status"] = "error"
            job["error"] = {"kind": "internal", "message": str(e), "diagnostics": ""}
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"job_id": render_job.job_id, "status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    q = job["progress_queue"]

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] in ("error", "cancelled"):
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/cancel", methods=["POST"])
def cancel_job(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] != "processing":
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    job["render_job"].cancel()
    return jsonify({"status": "cancelling"})


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    render_job = job["render_job"]
    resp = {
        "status": job["status"],
        "operation": render_job.manifest.operation.value,
        "input": str(render_job.manifest.input),
        "output": str(render_job.manifest.output),
    }
    if job["status"] == "done":
        resp["result"] = job["result"]
    if job["status"] in ("error", "cancelled"):
        resp["error"] = job["error"]
    return jsonify(resp)
