from __future__ import annotations

import logging

from dotenv import load_dotenv
from quart import Quart, jsonify
from werkzeug.exceptions import HTTPException

from daybook.settings import settings

load_dotenv()


def create_app(services=None):
    from .services.container import (
        SERVICES_EXTENSION_KEY,
        AppLifecycle,
        AppServices,
    )
    from .services.errors import JournalError
    from .routes.helpers import journal_error_status

    services = services or AppServices.create()
    lifecycle = AppLifecycle(services)

    app = Quart(__name__)
    app.secret_key = str(settings.SECRET_KEY)

    app.extensions[SERVICES_EXTENSION_KEY] = services
    app.extensions["daybook_lifecycle"] = lifecycle

    logging.basicConfig(
        level=str(settings.get("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    from .routes.entries import entries_bp
    from .routes.profile import profile_bp

    app.register_blueprint(entries_bp)
    app.register_blueprint(profile_bp)

    @app.before_serving
    async def _start_lifecycle() -> None:
        await lifecycle.start()

    @app.after_serving
    async def _stop_lifecycle() -> None:
        await lifecycle.stop()

    @app.get("/healthz")
    async def healthz():
        return jsonify({"ok": True})

    @app.errorhandler(JournalError)
    async def handle_journal_error(e: JournalError):
        status = journal_error_status(e)
        if status >= 500:
            app.logger.exception("Journal operation failed: %s", e)
            return jsonify({"message": "Could not save your entry. Please try again."}), status
        return jsonify({"message": str(e)}), status

    @app.errorhandler(HTTPException)
    async def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    async def handle_exception(e):
        app.logger.exception("Unhandled exception: %s", e)
        message = "An unexpected error occurred. Please try again later."
        return jsonify({"message": message}), 500

    app.logger.info("Application initialized")
    return app
