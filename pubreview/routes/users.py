"""Admin routes - user management."""
from flask import Blueprint, g, jsonify, request

from pubreview.routes.auth import admin_required, request_data
from pubreview.services import identity

users_bp = Blueprint('users', __name__, url_prefix='/api/users')


@users_bp.route('')
@admin_required
def users_list():
    """List users, optionally only those with ``?role=``."""
    users = identity.list_users(request.args.get('role'))
    return jsonify({'success': True, 'count': len(users), 'data': [user.to_dict() for user in users]})


@users_bp.route('/add-reviewer', methods=['POST'])
@admin_required
def add_reviewer():
    data = request_data()
    reviewer = identity.add_reviewer(g.current_user, data.get('username'), data.get('email'), data.get('password'))
    return jsonify({'success': True, 'message': 'Reviewer added successfully', 'data': reviewer.to_dict()}), 201


@users_bp.route('/<id:user_id>')
@admin_required
def user_detail(user_id):
    return jsonify({'success': True, 'data': identity.get_user(user_id).to_dict()})


@users_bp.route('/<id:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    data = request_data()
    user = identity.update_user(
        g.current_user, user_id,
        username=data.get('username'),
        email=data.get('email'),
        role=data.get('role'),
    )
    return jsonify({'success': True, 'data': user.to_dict()})


@users_bp.route('/<id:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    identity.delete_user(g.current_user, user_id)
    return jsonify({'success': True, 'message': 'User removed'})
