"""Models package - Re-exports all models for convenient importing."""
from pubreview.extensions import db
from pubreview.models.user import User, Role
from pubreview.models.publication import (
    Publication, PublicationAuthor, PublicationStatus, Category, DESCRIPTION_MAX_LENGTH,
)

__all__ = [
    'db', 'User', 'Role', 'Publication', 'PublicationAuthor',
    'PublicationStatus', 'Category', 'DESCRIPTION_MAX_LENGTH',
]
