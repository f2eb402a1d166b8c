"""Pytest configuration and fixtures."""
import io
import json
from pathlib import Path
from typing import Any, Dict

import pytest

from pubreview import create_app
from pubreview.extensions import db as _db
from pubreview.models import Publication, PublicationStatus

PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n'
PASSWORD = 'secret123'


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


def pdf_upload(name='paper.pdf', data=PDF_BYTES, mimetype='application/pdf'):
    return (io.BytesIO(data), name, mimetype)


@pytest.fixture
def sample_metadata() -> Dict[str, Any]:
    """Form fields for a valid submission."""
    return {
        'title': '  Currents of the South Atlantic  ',
        'description': 'Observations from three cruises.',
        'authorNames': json.dumps([' Ada Lovelace ', 'Grace Hopper']),
        'category': 'research_paper',
        'doi': '10.1234/ocean.2023.15',
        'dateOfPublication': '2023-06-15',
        'volume': 'Vol. 3',
    }


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', UPLOAD_FOLDER=str(tmp_path / 'uploads'), MAX_PUBLICATION_SIZE=4096)
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    """Register an account and return the response body (user fields plus token)."""
    def _register(username, email=None, password=PASSWORD, role=None, token=None):
        payload = {'username': username, 'email': email or f'{username}@example.com', 'password': password}
        if role:
            payload['role'] = role
        headers = auth_header(token) if token else {}
        resp = client.post('/api/auth/register', json=payload, headers=headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _register


@pytest.fixture
def admin(register):
    """First account in the store, therefore an admin."""
    return register('alice')


@pytest.fixture
def author(admin, register):
    return register('carol')


@pytest.fixture
def other_author(admin, register):
    return register('dave')


@pytest.fixture
def reviewer(client, admin):
    resp = client.post('/api/users/add-reviewer', json={
        'username': 'bob', 'email': 'bob@example.com', 'password': PASSWORD,
    }, headers=auth_header(admin['token']))
    assert resp.status_code == 201, resp.get_json()
    resp = client.post('/api/auth/login', json={'email': 'bob@example.com', 'password': PASSWORD})
    return resp.get_json()


@pytest.fixture
def submit(client, sample_metadata):
    """POST a publication as ``token``; keyword overrides replace form fields (None drops one)."""
    def _submit(token, upload=None, **overrides):
        form = dict(sample_metadata)
        form.update(overrides)
        form = {key: value for key, value in form.items() if value is not None}
        form['publicationPdf'] = upload if upload is not None else pdf_upload()
        return client.post('/api/publications', data=form, headers=auth_header(token),
                           content_type='multipart/form-data')
    return _submit


@pytest.fixture
def publication(submit, author):
    resp = submit(author['token'])
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


@pytest.fixture
def set_status(app):
    def _set_status(publication_id, status):
        with app.app_context():
            pub = _db.session.get(Publication, publication_id)
            pub.status = PublicationStatus(status)
            _db.session.commit()
    return _set_status


@pytest.fixture
def stored_files(app):
    def _stored_files():
        directory = Path(app.config['UPLOAD_FOLDER']) / 'publications'
        if not directory.exists():
            return []
        return sorted(p.name for p in directory.iterdir() if p.is_file())
    return _stored_files
