# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BillingError
from ..services import products_service
from ..validation import optional_int
from .invoices import error_response


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products_route():
    """
    List products.

    Query: search (name, SKU or barcode), page, per_page
    """
    try:
        result = products_service.list_products(
            search=request.args.get("search"),
            page=optional_int(request.args, "page", minimum=1),
            per_page=optional_int(request.args, "per_page", minimum=1),
        )
        return jsonify(result), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("")
def create_product_route():
    try:
        data = request.get_json(silent=True) or {}
        patch = products_service.parse_product_payload(data)
        product = products_service.create_product(patch=patch)
        return jsonify({"product": product.to_dict()}), 201

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        product = products_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200

    except BillingError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Internal server error"}), 500
