# Overview: Flask API routes for invoices; parses input and returns JSON responses.

# backend/billing/routes/invoices.py
"""Invoice API routes: commit, list, status toggle, receipt and CSV export."""

from flask import Blueprint, Response, current_app, jsonify, request

from ..errors import BillingError, ConflictError, NotFound, StoreUnavailable, ValidationError
from ..services import reporting_service
from ..services.invoice_engine import engine_from_config
from ..services.receipt_service import BusinessInfo, render_receipt
from ..time_utils import utcnow
from ..validation import optional_str, parse_cart, parse_context, require_str


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def error_response(exc: BillingError):
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, NotFound):
        status = 404
    elif isinstance(exc, ConflictError):
        status = 409
    elif isinstance(exc, StoreUnavailable):
        status = 503
    else:
        status = 400
    return jsonify({"error": str(exc), "details": exc.details}), status


def _filtered_invoices():
    engine = engine_from_config(current_app.config)
    return reporting_service.filter_invoices(
        engine.list_invoices(),
        status=request.args.get("status"),
        customer_ref=request.args.get("customer_ref"),
        month=request.args.get("month"),
        search=request.args.get("search"),
    )


@invoices_bp.post("")
def commit_invoice_route():
    """
    Commit a cart as a numbered invoice.

    Body:
        lines: [{product_id, quantity, unit_amount_cents}]
        cashier_id, status, discount {type, value}, tax_rate_bps,
        amount_received_cents, customer_ref, customer_name

    Totals in the body are ignored; they are always recomputed.
    """
    try:
        data = request.get_json(silent=True) or {}
        cart = parse_cart(data)
        context = parse_context(data)

        invoice = engine_from_config(current_app.config).commit_invoice(cart, context)
        return jsonify({"invoice": invoice.to_dict()}), 201

    except StoreUnavailable as e:
        current_app.logger.error("Invoice commit failed: %s", e)
        return error_response(e)
    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to commit invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("")
def list_invoices_route():
    """
    List invoices, newest first.

    Query: status (all|paid|unpaid), customer_ref, month (YYYY-MM), search
    """
    try:
        invoices = _filtered_invoices()
        return jsonify({
            "items": [inv.to_dict() for inv in invoices],
            "count": len(invoices),
        }), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list invoices")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/export")
def export_invoices_route():
    """Filtered invoices as CSV (same filters as the list route)."""
    try:
        invoices = _filtered_invoices()
        if not invoices:
            return jsonify({"error": "No invoices to export"}), 404

        month = optional_str(request.args, "month")
        month_label = f"_{month}" if month and month != "all" else ""
        filename = f"invoices{month_label}_{utcnow().strftime('%Y-%m-%d')}.csv"
        return Response(
            reporting_service.invoices_to_csv(invoices),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to export invoices")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<invoice_id>")
def get_invoice_route(invoice_id: str):
    try:
        invoice = engine_from_config(current_app.config).get_invoice(invoice_id)
        return jsonify({"invoice": invoice.to_dict()}), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.post("/<invoice_id>/status")
def toggle_status_route(invoice_id: str):
    """
    Mark an invoice paid or unpaid.

    Body: status (paid|unpaid), actor (cashier name for the audit trail)
    """
    try:
        data = request.get_json(silent=True) or {}
        new_status = require_str(data, "status", max_length=16).lower()
        actor = require_str(data, "actor", max_length=128)

        invoice = engine_from_config(current_app.config).toggle_status(invoice_id, new_status, actor)
        return jsonify({"invoice": invoice.to_dict()}), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update invoice status")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<invoice_id>/receipt")
def receipt_route(invoice_id: str):
    try:
        invoice = engine_from_config(current_app.config).get_invoice(invoice_id)
        text = render_receipt(invoice, BusinessInfo.from_config(current_app.config))
        return Response(text, mimetype="text/plain")

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to render receipt")
        return jsonify({"error": "Internal server error"}), 500
