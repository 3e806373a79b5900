import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from pydantic import ValidationError

from catalog.store import NotFoundError, init_catalog_tables
from etl.pipeline import init_import_tables
from routes.catalog import catalog_bp
from routes.projects import projects_bp

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _default_config() -> dict:
    data_dir = os.environ.get('MATERIALS_DATA_DIR', os.path.join(BASE_DIR, 'data'))
    return {
        'DATA_DIR': data_dir,
        'CATALOG_DB_PATH': os.path.join(data_dir, 'catalog.db'),
        'UPLOAD_FOLDER': os.path.join(data_dir, 'uploads'),
        'LOG_LEVEL': os.environ.get('MATERIALS_LOG_LEVEL', 'INFO'),
        'MAX_CONTENT_LENGTH': 16 * 1024 * 1024,
    }


def create_app(config=None):
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    app.config.update(_default_config())
    if config:
        app.config.update(config)
        # Derived paths follow an overridden DATA_DIR unless set explicitly
        if 'DATA_DIR' in config:
            if 'CATALOG_DB_PATH' not in config:
                app.config['CATALOG_DB_PATH'] = os.path.join(config['DATA_DIR'], 'catalog.db')
            if 'UPLOAD_FOLDER' not in config:
                app.config['UPLOAD_FOLDER'] = os.path.join(config['DATA_DIR'], 'uploads')

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    os.makedirs(os.path.dirname(app.config['CATALOG_DB_PATH']) or '.', exist_ok=True)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # Ensure tables exist on startup
    init_catalog_tables(app.config['CATALOG_DB_PATH'])
    init_import_tables(app.config['CATALOG_DB_PATH'])

    app.register_blueprint(catalog_bp)
    app.register_blueprint(projects_bp)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({'error': str(e.args[0]) if e.args else 'Not found'}), 404

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({'error': 'Invalid data', 'details': e.errors(include_url=False, include_context=False)}), 400

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    return app


if __name__ == '__main__':
    create_app().run(debug=True, port=5000)
