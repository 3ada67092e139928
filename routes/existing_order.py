"""
Standalone existing-order status endpoints (called directly by BotSpace flows).

  POST /api/existing-order/status   {"phone": "..."} or {"message": "..."}
  GET  /api/existing-order/health
"""

import time
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify

from app_config import SUPPORT_PHONE, SERVICE_VERSION
from phone_extractor import extract_phone_number
from services.errors import OrderLookupError
from services.pia_client import pia_client
from services.order_status import lookup_active_orders, generate_active_orders_message
from chat_logger import get_logger, mask_phone

logger = get_logger("printo_cs")

existing_order_bp = Blueprint("existing_order", __name__, url_prefix="/api/existing-order")


def _resolve_phone(data: dict):
    """Normalise an explicit phone field, else dig one out of the free-text message."""
    for field in ("phone", "message"):
        value = data.get(field)
        if value:
            extraction = extract_phone_number(str(value))
            if extraction.success:
                return extraction.phone
    return None


@existing_order_bp.route("/status", methods=["POST"])
def order_status():
    started = time.time()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    try:
        phone = _resolve_phone(data)
        if not phone:
            logger.warning("Existing order | no valid phone number in request")
            return jsonify({
                "success": False,
                "error": "INVALID_PHONE",
                "message": "Please provide a valid 10-digit phone number.",
            }), 400

        try:
            active_orders = lookup_active_orders(phone, client=pia_client)
        except OrderLookupError as e:
            logger.error(f"Existing order | phone={mask_phone(phone)} | PIA error: {e.kind.value}")
            return jsonify({
                "success": False,
                "error": "PIA_ERROR",
                "message": (
                    "Unable to fetch order status at the moment. "
                    f"Please try again or call {SUPPORT_PHONE} for assistance."
                ),
            }), 500

        message = generate_active_orders_message(active_orders, phone)
        response_time = int((time.time() - started) * 1000)
        logger.info(
            f"Existing order | phone={mask_phone(phone)} | active={len(active_orders)} | "
            f"{response_time}ms"
        )
        return jsonify({
            "success": True,
            "message": message,
            "metadata": {
                "phone": phone,
                "activeOrderCount": len(active_orders),
                "responseTime": response_time,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        })

    except Exception as e:
        logger.error(f"Existing order | unexpected error: {e}", exc_info=True)
        return jsonify({
            "success": False,
            "error": "INTERNAL_ERROR",
            "message": f"Something went wrong. Please try again or call {SUPPORT_PHONE} for assistance.",
            "responseTime": int((time.time() - started) * 1000),
        }), 500


@existing_order_bp.route("/health", methods=["GET"])
def health():
    return jsonify({
        "status": "healthy",
        "service": "Existing Order Status System",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": SERVICE_VERSION,
    })
