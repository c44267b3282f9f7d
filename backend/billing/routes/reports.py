# Overview: Flask API routes for reports; returns JSON summaries over committed invoices.

from flask import Blueprint, current_app, jsonify

from ..errors import BillingError
from ..services import reporting_service
from ..services.invoice_engine import engine_from_config
from .invoices import error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/profit")
def profit_report_route():
    """Monthly and all-time revenue, cost, profit and margin."""
    try:
        engine = engine_from_config(current_app.config)
        return jsonify(reporting_service.profit_summary(engine.list_invoices())), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build profit report")
        return jsonify({"error": "Internal server error"}), 500
