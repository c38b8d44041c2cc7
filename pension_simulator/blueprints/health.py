"""Liveness endpoint."""

from flask import Blueprint, Response, jsonify

from pension_simulator import __version__

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Report that the service is up, with its version."""
    return jsonify({"status": "ok", "version": __version__})
