"""HTTP API routes: upload audio, render it, fetch the image."""

import logging
import subprocess
import uuid
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file

from waveview.engine import process
from waveview.errors import WaveviewError
from waveview.manifest import DEFAULT_SIZE, RenderRequest, parse_seconds, parse_size

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _job_or_404(job_id: str):
    job = _jobs.get(job_id)
    if job is None:
        return None, (jsonify({"error": "Job not found"}), 404)
    return job, None


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".wav"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
    }

    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/render", methods=["POST"])
def render(job_id: str):
    job, err = _job_or_404(job_id)
    if err:
        return err

    params = request.get_json(silent=True) or {}
    try:
        width, height = parse_size(str(params.get("size", DEFAULT_SIZE)))
        start = parse_seconds(str(params.get("start", 0)), "start")
        duration = params.get("duration")
        if duration is not None:
            duration = parse_seconds(str(duration), "duration")
    except WaveviewError as e:
        return jsonify({"error": str(e)}), 400

    render_request = RenderRequest(
        input=job["input_path"],
        output=job["dir"] / "output.png",
        width=width,
        height=height,
        start=start,
        duration=duration,
        title=params.get("title") or None,
        force=True,
        # Uploads are stored as input.<ext>; untagged files get the client's name
        source_name=job["filename"],
    )

    job["status"] = "rendering"
    job["error"] = None
    try:
        result = process(render_request)
    except WaveviewError as e:
        job["status"] = "error"
        job["error"] = str(e)
        return jsonify({"error": job["error"]}), 400
    except ZeroDivisionError:
        job["status"] = "error"
        job["error"] = f"image width {width}px is too narrow for the selected audio"
        return jsonify({"error": job["error"]}), 400
    except subprocess.CalledProcessError as e:
        job["status"] = "error"
        stderr = (e.stderr or "").strip()
        job["error"] = f"{e.cmd[0]} failed: {stderr[-500:]}" if stderr else str(e)
        logger.error("Render of job %s failed: %s", job_id, job["error"])
        return jsonify({"error": job["error"]}), 500

    job["status"] = "done"
    job["result"] = {
        "output_path": str(result.output_path),
        "title": result.title,
        "duration": result.selection.duration,
        "clamped": result.selection.clamped,
        "interval_ms": result.layout.interval_ms,
    }
    return jsonify({"status": "done", "result": job["result"]})


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    job, err = _job_or_404(job_id)
    if err:
        return err
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    return send_file(Path(job["result"]["output_path"]), mimetype="image/png")


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job, err = _job_or_404(job_id)
    if err:
        return err

    resp = {"status": job["status"], "filename": job.get("filename")}
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
