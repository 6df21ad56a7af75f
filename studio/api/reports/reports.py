from flask import Blueprint, current_app, g, jsonify

from ...services.report_service import build_summary
from ...utils.tokens import token_required

reports_bp = Blueprint("reports", __name__, url_prefix="/api/relatorios")


@reports_bp.route("", methods=["GET"])
@token_required
def get_report_summary():
    """
    Studio report summary
    ---
    tags:
      - Reports
    responses:
      200:
        description: Appointment counts per status, revenue from completed
                     appointments, per-service totals, client count and
                     number of products needing restock
    """
    try:
        return jsonify(build_summary(g.user_id))

    except Exception as e:
        current_app.logger.exception("Failed to build report summary")
        return jsonify({"status": "error", "message": "Failed to build report", "details": str(e)}), 500
