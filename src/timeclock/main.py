from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from .biometrics.controller import register as register_biometrics
from .container import build_container
from .core.logger import setup_logging
from .database.bootstrap import apply_schema
from .punches.controller import register as register_punches
from .settings import get_settings_module

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(settings=settings)
    logger.info("settings=%s db=%s", settings_module, container.conn.describe())

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        applied = apply_schema(container.conn)
        logger.info("Schema ready (%d statements applied)", applied)

    if container.warmer is not None:
        container.warmer.start()

    app.extensions["timeclock"] = container

    register_punches(app, container)
    register_biometrics(app, container)

    return app
