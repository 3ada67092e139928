"""
Chat endpoints as a Flask Blueprint.

  POST   /api/chat                  web chat (order status or LLM)
  GET    /api/sessions/<userId>     list a user's sessions
  POST   /api/sessions/new          start a fresh session
  DELETE /api/sessions/<sessionId>  forget a session
  POST   /api/botspace/webhook      inbound WhatsApp message via BotSpace
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from flask import Blueprint, request, jsonify

from app_config import SESSION_HISTORY_LIMIT, QUESTIONS_ASKED_LIMIT
from core.session import session_store, generate_user_id, generate_session_id
from models import OrderErrorKind, Session
from phone_extractor import get_phone_from_message
from services.errors import BotSpaceError
from services.pia_client import pia_client
from services.order_status import handle_order_status_query
from services.llm_client import get_llm_client
from services.conversation_logger import conversation_logger
from services.botspace_client import botspace_client
from chat_logger import get_logger, mask_phone, sanitize_log_string

logger = get_logger("printo_cs")

chat_bp = Blueprint("chat", __name__)

_PINCODE_RE = re.compile(r'\b[1-9][0-9]{5}\b', re.ASCII)


def _extract_pincode(text: str) -> str:
    match = _PINCODE_RE.search(text or "")
    return match.group(0) if match else "N/A"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ChatReply:
    text: str
    order_status: bool = False
    orders_count: int = 0
    success: bool = True
    error: Optional[OrderErrorKind] = None


def process_message(question: str, session: Session) -> ChatReply:
    """
    Route one customer message through the order-status path (when it carries
    a phone number) or the LLM path, and record the exchange in the session.

    The caller must hold the session lock. LLM failures propagate.
    """
    phone = get_phone_from_message(question)
    if phone:
        reply = handle_order_status_query(question, session, client=pia_client, phone=phone)
        if reply.success:
            session.add_exchange(question, reply.message)
        return ChatReply(
            text=reply.message,
            order_status=True,
            orders_count=reply.orders_count,
            success=reply.success,
            error=reply.error,
        )

    session.trim_history(SESSION_HISTORY_LIMIT)
    answer = get_llm_client().answer(question, list(session.messages), session.metadata)
    session.metadata.record_question(question, QUESTIONS_ASKED_LIMIT)
    session.add_exchange(question, answer)
    return ChatReply(text=answer)


def _log_exchange(session_id: str, question: str, reply_text: str, status: str,
                  started: float, order_status: bool = False, source: str = "web") -> None:
    conversation_logger.log_conversation_async(
        session_id=session_id,
        user_input=question,
        bot_response=reply_text,
        product="Order Status" if order_status else "N/A",
        pincode=None if order_status else _extract_pincode(question),
        status=status,
        response_time_ms=int((time.time() - started) * 1000),
        source=source,
    )


# ─────────────────────────────────────────────
# WEB CHAT
# ─────────────────────────────────────────────

@chat_bp.route("/api/chat", methods=["POST"])
def chat():
    """
    Request:  {"question": "...", "userId": "...", "sessionId": "..."}
    Response: {"success", "response", "userId", "sessionId", "timestamp"}
              plus "orderStatus" / "ordersCount" when the order path answered.
    """
    started = time.time()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Question is required"}), 400
    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        return jsonify({"error": "Question is required"}), 400

    user_id = data.get("userId") or generate_user_id()
    session_id = data.get("sessionId") or generate_session_id()

    session = session_store.get_or_create(session_id, user_id)
    session_store.touch(session_id)

    logger.info(f"Chat | session={session_id} | question={sanitize_log_string(question[:100])}")

    with session_store.session_lock(session_id):
        try:
            reply = process_message(question, session)
        except Exception as e:
            logger.error(f"Chat | session={session_id} | LLM error: {e}", exc_info=True)
            _log_exchange(session_id, question, f"ERROR: {e}", "error", started)
            return jsonify({
                "error": "Failed to get AI response",
                "message": str(e),
            }), 500

    _log_exchange(
        session_id, question, reply.text,
        "success" if reply.success else "failed",
        started, order_status=reply.order_status,
    )

    body = {
        "success": reply.success,
        "response": reply.text,
        "userId": user_id,
        "sessionId": session_id,
        "timestamp": _now_iso(),
    }
    if reply.order_status:
        body["orderStatus"] = True
        body["ordersCount"] = reply.orders_count
        if reply.error is not None:
            body["error"] = reply.error.value
    return jsonify(body), 200


# ─────────────────────────────────────────────
# SESSIONS
# ─────────────────────────────────────────────

@chat_bp.route("/api/sessions/<user_id>", methods=["GET"])
def list_sessions(user_id):
    """All sessions belonging to *user_id*."""
    sessions = [s.summary() for s in session_store.list_for_user(user_id)]
    return jsonify({"success": True, "sessions": sessions})


@chat_bp.route("/api/sessions/new", methods=["POST"])
def new_session():
    data = request.get_json(silent=True)
    user_id = data.get("userId") if isinstance(data, dict) else None
    if not user_id:
        return jsonify({"error": "User ID is required"}), 400

    session_id = generate_session_id()
    session_store.get_or_create(session_id, user_id)
    return jsonify({
        "success": True,
        "sessionId": session_id,
        "message": "New session created",
    })


@chat_bp.route("/api/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id):
    if session_store.delete(session_id):
        return jsonify({"success": True, "message": "Session cleared"})
    return jsonify({"success": True, "message": "Session not found"})


# ─────────────────────────────────────────────
# BOTSPACE WEBHOOK
# ─────────────────────────────────────────────

def _webhook_question(body: dict) -> Optional[str]:
    message = body.get("message")
    if isinstance(message, dict):
        message = message.get("text")
    question = message or body.get("question") or body.get("text")
    return question if isinstance(question, str) and question.strip() else None


def _send_whatsapp(user_data: dict, phone: Optional[str], text: str) -> Optional[dict]:
    """Deliver *text* over BotSpace. Delivery failures are logged, never raised."""
    if not botspace_client.is_configured():
        logger.warning("BotSpace not configured - response not sent to WhatsApp")
        return None
    try:
        if user_data.get("id"):
            return botspace_client.send_session_message(user_data["id"], text)
        if phone:
            return botspace_client.send_message_with_retry(phone, text)
    except BotSpaceError as e:
        logger.error(f"Failed to send WhatsApp message to {mask_phone(phone)}: {e}")
    return None


@chat_bp.route("/api/botspace/webhook", methods=["POST"])
def botspace_webhook():
    """
    Request:  {"data": {"phone"|"fullPhoneNumber", "name", "id"}, "message": ...}
    Response: {"success", "response", "userId", "sessionId", "whatsappSent", "messageId"}
    """
    started = time.time()
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        logger.error("BotSpace webhook | payload is not a JSON object")
        return jsonify({"error": "Message is required"}), 400
    user_data = body.get("data")
    if not isinstance(user_data, dict):
        user_data = {}
    phone = user_data.get("fullPhoneNumber") or user_data.get("phone")
    name = user_data.get("name") or "Customer"
    session_id = f"botspace_{phone}"

    question = _webhook_question(body)
    if question is None:
        logger.error("BotSpace webhook | no message found in payload")
        return jsonify({"error": "Message is required"}), 400

    logger.info(f"BotSpace webhook | from={mask_phone(phone)} | question={sanitize_log_string(question[:100])}")

    session = session_store.get_or_create(
        session_id, session_id, customer_name=name, customer_phone=phone,
    )
    session_store.touch(session_id)

    with session_store.session_lock(session_id):
        try:
            reply = process_message(question, session)
        except Exception as e:
            logger.error(f"BotSpace webhook | session={session_id} | error: {e}", exc_info=True)
            _log_exchange(session_id, question, f"ERROR: {e}", "failed", started, source="botspace")
            return jsonify({
                "success": False,
                "error": "Failed to process message",
                "message": str(e),
            }), 500

    _log_exchange(
        session_id, question, reply.text,
        "success" if reply.success else "failed",
        started, order_status=reply.order_status, source="botspace",
    )

    sent = _send_whatsapp(user_data, phone, reply.text)
    return jsonify({
        "success": True,
        "response": reply.text,
        "userId": session_id,
        "sessionId": session_id,
        "whatsappSent": bool(sent),
        "messageId": (sent or {}).get("messageId"),
    })
