"""
PubReview - Application Factory
"""
import os

import click
from flask import Flask, has_request_context, request
from dotenv import load_dotenv

from pubreview.errors import register_error_handlers
from pubreview.extensions import db, babel
from pubreview.log import configure_logging
from pubreview.routes import register_blueprints
from config.settings import config


def get_locale():
    """Determine the best locale for the user."""
    if not has_request_context():
        return None
    lang = request.cookies.get('babel_translation')
    if lang:
        return lang
    return request.accept_languages.best_match(['en', 'es'])


def create_app(config_name=None, **overrides):
    """Application Factory."""
    load_dotenv()

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))
    app.config.update(overrides)

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    babel.init_app(app, locale_selector=get_locale)

    register_error_handlers(app)
    register_blueprints(app)

    # CLI Commands
    register_cli_commands(app)

    return app


def register_cli_commands(app):
    """Register CLI commands."""

    @app.cli.command("init-db")
    def init_db_command():
        """Creates database tables."""
        db.create_all()
        click.echo("Initialized the database.")

    @app.cli.command("prune-uploads")
    @click.option('--dry-run', is_flag=True, help="Only list the files that would be removed.")
    def prune_uploads_command(dry_run):
        """Removes stored PDFs that no publication refers to."""
        from pubreview.services import publications, storage
        orphans = list(storage.unreferenced_files(publications.referenced_content()))
        for path in orphans:
            if dry_run:
                click.echo(f"Would remove {path.name}")
            else:
                storage.discard(storage.reference_for(path))
        click.echo(f"{len(orphans)} unreferenced file(s) {'found' if dry_run else 'removed'}.")
