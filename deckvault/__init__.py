"""
deckvault – Flask application factory.
Personal MTG collection tracker: holdings, decks and market prices.
"""
import atexit
import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from deckvault.config import config
from deckvault.errors import DeckVaultError
from deckvault.extensions import db, limiter


def create_app(config_name: str = "default", catalog=None, config_overrides: dict | None = None) -> Flask:
    """Build the app, load the collection snapshot and wire the services.

    Args:
        config_name:      Key into deckvault.config.config.
        catalog:          Card catalog for lookups; the Scryfall client by default.
        config_overrides: Extra config values applied after the config class.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)

    # Ensure instance directory exists (the snapshot lives here by default)
    os.makedirs(app.instance_path, exist_ok=True)
    if not app.config.get("SNAPSHOT_PATH"):
        app.config["SNAPSHOT_PATH"] = os.path.join(app.instance_path, "collection.db")

    # ── Initialise extensions ────────────────────────────────────────────────
    db.init_app(app)
    limiter.init_app(app)

    from deckvault.utils import scryfall
    scryfall.configure(timeout=app.config.get("SCRYFALL_TIMEOUT"))

    # ── Register blueprints ──────────────────────────────────────────────────
    from deckvault.blueprints.inventory import inventory_bp
    from deckvault.blueprints.decks import decks_bp
    from deckvault.blueprints.cards import cards_bp
    from deckvault.blueprints.stats import stats_bp

    app.register_blueprint(inventory_bp)
    app.register_blueprint(decks_bp)
    app.register_blueprint(cards_bp)
    app.register_blueprint(stats_bp)

    # ── Error handlers ───────────────────────────────────────────────────────
    @app.errorhandler(DeckVaultError)
    def deckvault_error(e):
        return jsonify(error=e.message), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify(error=e.description), e.code

    # ── Collection store + services ──────────────────────────────────────────
    from deckvault.utils.store import CollectionStore
    from deckvault.utils.inventory_service import InventoryService
    from deckvault.utils.deck_service import DeckService

    with app.app_context():
        # Register all models with SQLAlchemy before create_all().
        import importlib
        importlib.import_module("deckvault.models")

        store = CollectionStore(app.config["SNAPSHOT_PATH"])
        store.load()

    app.extensions["deckvault.store"] = store
    app.extensions["deckvault.inventory"] = InventoryService(store, catalog or scryfall)
    app.extensions["deckvault.decks"] = DeckService(store)

    if app.config.get("SNAPSHOT_ON_EXIT"):
        atexit.register(_final_snapshot, app)

    return app


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("deckvault").setLevel(level)


def _final_snapshot(app: Flask) -> None:
    """Write one last snapshot at interpreter shutdown."""
    log = logging.getLogger(__name__)
    with app.app_context():
        try:
            app.extensions["deckvault.store"].snapshot()
        except DeckVaultError:
            log.exception("Final snapshot at shutdown failed")
