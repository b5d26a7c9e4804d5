# Overview: Flask API routes for payments; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_actor, scope_kwargs
from ..errors import ServiceError
from ..money import format_cents
from ..services import payment_service


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.get("/")
@require_actor
def list_payments_route():
    try:
        filters = {
            "customer_id": request.args.get("customer_id", type=int),
            "sale_id": request.args.get("sale_id", type=int),
            "payment_type": request.args.get("type"),
        }
        payments = payment_service.list_payments(g.actor, **filters, **scope_kwargs())
        total_cents = payment_service.payments_total(g.actor, **filters, **scope_kwargs())
        return jsonify({
            "payments": [p.to_dict() for p in payments],
            "total": format_cents(total_cents),
        }), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list payments")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/")
@require_actor
def create_manual_payment_route():
    """
    Record a manual payment.

    Body: customer_id, amount, payment_place, receipt_number, reason, notes.
    """
    try:
        data = request.get_json() or {}
        if data.get("customer_id") is None or data.get("amount") is None:
            return jsonify({"error": "customer_id and amount required"}), 400

        payment = payment_service.create_manual_payment(
            g.actor,
            customer_id=data.get("customer_id"),
            amount=data.get("amount"),
            payment_place=data.get("payment_place"),
            receipt_number=data.get("receipt_number"),
            reason=data.get("reason"),
            notes=data.get("notes"),
            **scope_kwargs(),
        )
        return jsonify({"payment": payment.to_dict()}), 201

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create payment")
        return jsonify({"error": "Internal server error"}), 500
