"""Main routes - health check and stored file downloads."""
from flask import Blueprint, send_from_directory

from pubreview.services import storage

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return 'Publication Management API Running'


@main_bp.route('/uploads/publications/<path:filename>')
def publication_file(filename):
    # send_from_directory refuses paths escaping the directory
    return send_from_directory(storage.publications_dir(), filename, mimetype=storage.PDF_MIMETYPE)
