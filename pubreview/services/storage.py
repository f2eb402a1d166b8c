"""Content-file storage for publication PDFs.

Files live under ``UPLOAD_FOLDER/publications`` and publications refer to
them as ``/uploads/publications/<name>``. Helpers here keep that directory
in step with the publication records:

* :func:`validate_upload` rejects a file before anything is written;
* :func:`staged_content` stores a file for the duration of a block and
  removes it again if the block raises;
* :func:`discard` deletes a stored file, refusing any reference that
  resolves outside the storage root.
"""
import logging
import os
import secrets
import shutil
import time
from contextlib import contextmanager
from pathlib import Path

from flask import current_app
from flask_babel import gettext as _

from pubreview.errors import FileTooLarge, StorageError, UnsupportedFileType, ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = '/uploads'
PUBLICATIONS_DIR = 'publications'
FIELD_NAME = 'publicationPdf'
PDF_MIMETYPE = 'application/pdf'
PDF_MAGIC = b'%PDF-'


def storage_root():
    return Path(current_app.config['UPLOAD_FOLDER']).resolve()


def publications_dir():
    path = storage_root() / PUBLICATIONS_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def _stream_size(stream):
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _looks_like_pdf(upload):
    if upload.mimetype != PDF_MIMETYPE:
        return False
    if os.path.splitext(upload.filename)[1].lower() != '.pdf':
        return False
    head = upload.stream.read(len(PDF_MAGIC))
    upload.stream.seek(0)
    return head == PDF_MAGIC


def validate_upload(upload):
    """Check presence, type and size of an uploaded file."""
    if upload is None or not upload.filename:
        raise ValidationError(_('Publication PDF file is required.'))
    if not _looks_like_pdf(upload):
        raise UnsupportedFileType(_('Only PDF files are allowed!'))
    if _stream_size(upload.stream) > current_app.config['MAX_PUBLICATION_SIZE']:
        raise too_large_error()


def too_large_error():
    max_size = current_app.config['MAX_PUBLICATION_SIZE']
    return FileTooLarge(_('File too large. Max %(mb)dMB allowed.', mb=max(1, max_size // (1024 * 1024))))


def generate_filename():
    """Timestamp plus random suffix, unique across concurrent uploads."""
    return f'{FIELD_NAME}-{int(time.time() * 1000)}-{secrets.token_hex(8)}.pdf'


def reference_for(path):
    relative = path.relative_to(storage_root()).as_posix()
    return f'{URL_PREFIX}/{relative}'


def resolve(reference):
    """Absolute path of a stored reference, or ``None`` if it escapes the root."""
    if not reference or not reference.startswith(URL_PREFIX + '/'):
        return None
    root = storage_root()
    path = (root / reference[len(URL_PREFIX) + 1:]).resolve()
    if root not in path.parents:
        return None
    return path


def store(upload):
    """Validate and write an upload, returning its content reference."""
    validate_upload(upload)
    path = publications_dir() / generate_filename()
    try:
        with open(path, 'xb') as fh:
            shutil.copyfileobj(upload.stream, fh)
    except OSError as e:
        logger.error("Could not store upload %s at %s: %s", upload.filename, path, e)
        path.unlink(missing_ok=True)
        raise StorageError('File storage error')
    logger.info("Stored %s as %s", upload.filename, path.name)
    return reference_for(path)


def discard(reference):
    """Best-effort removal of a stored file. Returns True if a file was deleted."""
    if not reference:
        return False
    path = resolve(reference)
    if path is None:
        logger.warning("Refusing to delete %s: outside the upload directory", reference)
        return False
    if not path.is_file():
        logger.warning("Stored file %s not found, nothing to delete", path)
        return False
    try:
        path.unlink()
    except OSError as e:
        logger.error("Error deleting file %s: %s", path, e)
        return False
    logger.info("File %s deleted", path)
    return True


@contextmanager
def staged_content(upload):
    """Store ``upload`` and yield its reference; remove the file if the block fails.

    Yields ``None`` without touching storage when there is no upload.
    """
    if upload is None:
        yield None
        return
    reference = store(upload)
    try:
        yield reference
    except BaseException:
        discard(reference)
        raise


def unreferenced_files(referenced):
    """Stored files whose reference is not in ``referenced``."""
    referenced = set(referenced)
    for path in sorted(publications_dir().iterdir()):
        if path.is_file() and reference_for(path) not in referenced:
            yield path
