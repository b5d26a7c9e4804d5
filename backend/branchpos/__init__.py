# backend/branchpos/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Refuse to start when a branch-owned model is missing from the catalog
    if app.config.get("SCOPE_CATALOG_STRICT", True):
        from .scoping import DEFAULT_CATALOG, verify_catalog
        mapped = [mapper.class_ for mapper in db.Model.registry.mappers]
        verify_catalog(DEFAULT_CATALOG, mapped)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.sales import sales_bp
    from .routes.payments import payments_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(payments_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
