"""Publication routes - submission, browsing, review and administration."""
from flask import Blueprint, g, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from pubreview.errors import error_response
from pubreview.routes.auth import (
    admin_required, login_optional, login_required, publisher_required, request_data, reviewer_required,
)
from pubreview.services import publications, query, review, storage

publications_bp = Blueprint('publications', __name__, url_prefix='/api/publications')


def submitted_metadata():
    data = request_data()
    if not request.is_json:
        # Multipart forms may repeat the field once per author
        authors = request.form.getlist('authorNames')
        if len(authors) > 1:
            data['authorNames'] = authors
    return data


def uploaded_file():
    # Browsers send an empty part when no file was chosen
    upload = request.files.get(storage.FIELD_NAME)
    if not upload or not upload.filename:
        return None
    return upload


def listing(items):
    return jsonify({'success': True, 'count': len(items), 'data': [item.to_dict() for item in items]})


@publications_bp.errorhandler(RequestEntityTooLarge)
def upload_too_large(error):
    # Bodies over MAX_CONTENT_LENGTH get the same answer as an oversized PDF
    too_large = storage.too_large_error()
    return error_response(too_large.message, too_large.status_code)


# ========================================
# PUBLIC AND OWNER VIEWS
# ========================================

@publications_bp.route('', methods=['GET'])
def list_publications():
    """Published publications with search, filters and pagination."""
    return jsonify(query.page_payload(query.public_page(request.args)))


@publications_bp.route('', methods=['POST'])
@publisher_required
def create_publication():
    publication = publications.create_publication(g.current_user, submitted_metadata(), uploaded_file())
    return jsonify({'success': True, 'data': publication.to_dict()}), 201


@publications_bp.route('/my-publications')
@publisher_required
def my_publications():
    return listing(query.owner_list(g.current_user))


@publications_bp.route('/<id:publication_id>', methods=['GET'])
@login_optional
def get_publication(publication_id):
    publication = publications.get_visible_publication(g.current_user, publication_id)
    return jsonify({'success': True, 'data': publication.to_dict()})


@publications_bp.route('/<id:publication_id>', methods=['PUT'])
@login_required
def update_publication(publication_id):
    publication = publications.update_publication(
        g.current_user, publication_id, submitted_metadata(), uploaded_file()
    )
    return jsonify({'success': True, 'data': publication.to_dict()})


@publications_bp.route('/<id:publication_id>', methods=['DELETE'])
@login_required
def delete_publication(publication_id):
    publications.delete_publication(g.current_user, publication_id)
    return jsonify({'success': True, 'message': 'Publication removed'})


# ========================================
# REVIEW
# ========================================

@publications_bp.route('/review/queue')
@reviewer_required
def review_queue():
    return listing(query.review_queue(g.current_user))


@publications_bp.route('/review/<id:publication_id>', methods=['PUT'])
@reviewer_required
def submit_review(publication_id):
    data = request_data()
    publication = review.submit_review(
        publication_id, g.current_user, data.get('status'), data.get('reviewerComments')
    )
    return jsonify({'success': True, 'data': publication.to_dict()})


# ========================================
# ADMIN
# ========================================

@publications_bp.route('/admin/all')
@admin_required
def admin_list_publications():
    return jsonify(query.page_payload(query.admin_page(g.current_user, request.args)))


@publications_bp.route('/admin/<id:publication_id>', methods=['DELETE'])
@admin_required
def admin_delete_publication(publication_id):
    publications.admin_delete_publication(g.current_user, publication_id)
    return jsonify({'success': True, 'message': 'Publication removed by admin'})
