# Overview: Flask API routes for machine sales and installments; parses input and returns JSON responses.

# backend/branchpos/routes/sales.py
"""Sales API routes. Branch scoping is applied by the service layer."""

from datetime import date

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_actor, scope_kwargs
from ..errors import ServiceError, ValidationError
from ..services import sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_date(raw, field: str):
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", details={field: raw})


@sales_bp.get("/")
@require_actor
def list_sales_route():
    try:
        customer_id = request.args.get("customer_id", type=int)
        sales = sales_service.list_sales(
            g.actor,
            status=request.args.get("status"),
            customer_id=customer_id,
            **scope_kwargs(),
        )
        return jsonify({"sales": [s.to_dict() for s in sales]}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/")
@require_actor
def create_sale_route():
    """
    Sell a machine.

    Body: serial_number, customer_id, kind (CASH | INSTALLMENT), total_price,
    paid_amount, installment_count, payment_place, receipt_number, notes.
    """
    try:
        data = request.get_json() or {}
        if not data.get("serial_number") or data.get("customer_id") is None:
            return jsonify({"error": "serial_number and customer_id required"}), 400

        sale = sales_service.create_sale(
            g.actor,
            serial_number=data.get("serial_number"),
            customer_id=data.get("customer_id"),
            kind=data.get("kind"),
            total_price=data.get("total_price"),
            paid_amount=data.get("paid_amount", 0),
            installment_count=data.get("installment_count"),
            payment_place=data.get("payment_place"),
            receipt_number=data.get("receipt_number"),
            notes=data.get("notes"),
            **scope_kwargs(),
        )
        return jsonify({"sale": sale.to_dict(include_installments=True)}), 201

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_actor
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.actor, sale_id, **scope_kwargs())
        return jsonify({"sale": sale.to_dict(include_installments=True)}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_actor
def delete_sale_route(sale_id: int):
    """Void a sale; returns the snapshot recorded in the movement log."""
    try:
        snapshot = sales_service.delete_sale(g.actor, sale_id, **scope_kwargs())
        return jsonify({"voided": snapshot}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to void sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/recalculate")
@require_actor
def recalculate_route(sale_id: int):
    try:
        data = request.get_json() or {}
        if data.get("installment_count") is None:
            return jsonify({"error": "installment_count required"}), 400

        sale = sales_service.recalculate_installments(
            g.actor,
            sale_id,
            data.get("installment_count"),
            start_date=_parse_date(data.get("start_date"), "start_date"),
            **scope_kwargs(),
        )
        return jsonify({"sale": sale.to_dict(include_installments=True)}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to recalculate installments")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/installments")
@require_actor
def list_installments_route():
    """?overdue=1 lists unpaid installments past due; ?sale_id= narrows to one sale."""
    try:
        overdue = request.args.get("overdue", "").lower() in ("1", "true", "yes")
        installments = sales_service.list_installments(
            g.actor,
            sale_id=request.args.get("sale_id", type=int),
            overdue=overdue,
            as_of=_parse_date(request.args.get("as_of"), "as_of"),
            **scope_kwargs(),
        )
        return jsonify({"installments": [i.to_dict() for i in installments]}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list installments")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/installments/<int:installment_id>/pay")
@require_actor
def pay_installment_route(installment_id: int):
    try:
        data = request.get_json() or {}
        installment = sales_service.pay_installment(
            g.actor,
            installment_id,
            payment_place=data.get("payment_place"),
            receipt_number=data.get("receipt_number"),
            amount=data.get("amount"),
            notes=data.get("notes"),
            **scope_kwargs(),
        )
        return jsonify({"installment": installment.to_dict()}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to pay installment")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/machines/<serial_number>/history")
@require_actor
def machine_history_route(serial_number: str):
    try:
        entries = sales_service.machine_history(g.actor, serial_number, **scope_kwargs())
        return jsonify({"history": [e.to_dict() for e in entries]}), 200

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load machine history")
        return jsonify({"error": "Internal server error"}), 500
