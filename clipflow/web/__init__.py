"""Flask application factory for the ClipFlow job API."""

from pathlib import Path

from flask import Flask, jsonify

from clipflow.scratch import ScratchArena


def create_app(scratch_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["SCRATCH_ARENA"] = ScratchArena(scratch_dir)
    app.config.setdefault("MAX_FINISHED_JOBS", 100)

    from clipflow.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    return app
