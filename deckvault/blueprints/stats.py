"""
Stats blueprint.

GET  /api/stats   – totals, collection value and quantity per colour group
"""
from flask import Blueprint, jsonify

from deckvault.utils.helpers import get_store
from deckvault.utils.stats_service import compute_stats

stats_bp = Blueprint("stats", __name__)


@stats_bp.route("/api/stats")
def stats():
    return jsonify(compute_stats(get_store()))
