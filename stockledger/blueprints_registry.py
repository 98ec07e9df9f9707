import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    from .blueprints.inventory import inventory_bp

    app.register_blueprint(inventory_bp)
    logger.debug("Registered blueprints: %s", sorted(app.blueprints))
