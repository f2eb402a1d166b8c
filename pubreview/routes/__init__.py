"""Routes package - Blueprint registration."""
from werkzeug.routing import IntegerConverter

from pubreview.routes.main import main_bp
from pubreview.routes.auth import auth_bp
from pubreview.routes.publications import publications_bp
from pubreview.routes.users import users_bp


class RecordIdConverter(IntegerConverter):
    """Positive record ids that fit an INTEGER column; anything larger is a 404."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault('min', 1)
        kwargs.setdefault('max', 2 ** 31 - 1)
        super().__init__(map, *args, **kwargs)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.url_map.converters['id'] = RecordIdConverter
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(publications_bp)
    app.register_blueprint(users_bp)
