"""
Printo CS Assistant — Chat API Backend
Runs on port 3000 by default.

Usage:
    python server.py

Endpoints:
    POST http://localhost:3000/api/chat
    POST http://localhost:3000/api/existing-order/status
    POST http://localhost:3000/api/botspace/webhook
    GET  http://localhost:3000/health
"""

from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS

from app_config import PORT, DEBUG, SERVICE_VERSION
from core.session import session_store
from routes import chat_bp, existing_order_bp
from services.conversation_logger import conversation_logger
from services.botspace_client import botspace_client
from chat_logger import get_logger

logger = get_logger("printo_cs")


def create_app() -> Flask:
    app = Flask(__name__)
    CORS(app)

    app.register_blueprint(chat_bp)
    app.register_blueprint(existing_order_bp)

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": SERVICE_VERSION,
            "sessions": len(session_store),
            "sheetsLogging": conversation_logger.enabled,
            "botspace": botspace_client.is_configured(),
        })

    return app


app = create_app()


if __name__ == "__main__":
    print("=" * 60)
    print("  Printo CS Assistant — Chat API Server")
    print("=" * 60)
    print()

    # Idle sessions are dropped hourly
    session_store.start_background_sweep()
    conversation_logger.initialize_headers()

    print(f"🚀 Starting server on http://localhost:{PORT}")
    print(f"   POST http://localhost:{PORT}/api/chat")
    print(f"   POST http://localhost:{PORT}/api/existing-order/status")
    print(f"   POST http://localhost:{PORT}/api/botspace/webhook")
    print(f"   GET  http://localhost:{PORT}/health")
    print()

    app.run(
        host="0.0.0.0",
        port=PORT,
        debug=DEBUG,
    )
