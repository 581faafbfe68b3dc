"""
app.py — Flask entry point for the garden bed layout application.

Initializes the Flask app, registers all route blueprints,
calls init_db() and seed_defaults() on startup, prepares the
per-session bed workspaces, and injects UI strings into template context.

Run: python app.py → localhost:5000
"""

import os
import json
import logging
from flask import Flask
from flask_wtf.csrf import CSRFProtect

from database import init_db, seed_defaults
from plant_database import init_plant_db, seed_plants
from bed_workspace import WorkspaceRegistry, WORKSPACE_IDLE_SECONDS
from drag_controller import FLASH_INVALID_SECONDS
from lock_manager import LOCK_ANIMATION_SECONDS
from plant_picker import SEARCH_DEBOUNCE_SECONDS, PICKER_PER_PAGE
from routes.main import main_bp
from routes.beds import beds_bp
from routes.api import api_bp
from routes.plant_db import plant_db_bp
from routes.export import export_bp


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.secret_key = os.environ.get('SECRET_KEY', 'bed-layout-local-app-secret-key')
    app.config['WTF_CSRF_CHECK_DEFAULT'] = True
    app.config['TEMPLATES_AUTO_RELOAD'] = True
    app.config['SEED_DEFAULTS'] = True

    # Presentation timers and picker paging
    app.config['FLASH_INVALID_SECONDS'] = FLASH_INVALID_SECONDS
    app.config['LOCK_ANIMATION_SECONDS'] = LOCK_ANIMATION_SECONDS
    app.config['SEARCH_DEBOUNCE_SECONDS'] = SEARCH_DEBOUNCE_SECONDS
    app.config['PICKER_PER_PAGE'] = PICKER_PER_PAGE
    app.config['WORKSPACE_IDLE_SECONDS'] = WORKSPACE_IDLE_SECONDS

    if test_config:
        app.config.update(test_config)

    CSRFProtect(app)

    # Initialize databases and seed defaults
    with app.app_context():
        init_db()
        init_plant_db()
        if app.config['SEED_DEFAULTS']:
            seed_defaults()
            seed_plants()

    app.extensions['bed_workspaces'] = WorkspaceRegistry(
        idle_seconds=app.config['WORKSPACE_IDLE_SECONDS']
    )

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(beds_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(plant_db_bp)
    app.register_blueprint(export_bp)

    # Load UI strings
    base_dir = os.path.dirname(os.path.abspath(__file__))
    i18n_path = os.path.join(base_dir, 'i18n', 'en.json')
    with open(i18n_path, 'r', encoding='utf-8') as f:
        i18n = json.load(f)

    @app.context_processor
    def inject_i18n():
        """Inject UI strings into all templates."""
        return {'i18n': i18n}

    logger.info("Bed layout app ready")
    return app


if __name__ == '__main__':
    app = create_app()
    # Debug mode: enabled by default for development (auto-reload on file changes)
    # Set FLASK_DEBUG=0 to disable for production
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
