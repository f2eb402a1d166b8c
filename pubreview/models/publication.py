"""Publication and PublicationAuthor models."""
import enum
from datetime import datetime

from sqlalchemy.orm import validates

from pubreview.extensions import db


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class PublicationStatus(str, enum.Enum):
    PENDING_REVIEW = 'pending_review'
    NEEDS_CORRECTION = 'needs_correction'
    PUBLISHED = 'published'
    REJECTED = 'rejected'


class Category(str, enum.Enum):
    MAGAZINE = 'magazine'
    BOOK = 'book'
    RESEARCH_PAPER = 'research_paper'
    JOURNAL = 'journal'


DESCRIPTION_MAX_LENGTH = 250


class PublicationAuthor(db.Model):
    __tablename__ = 'publication_authors'

    id = db.Column(db.Integer, primary_key=True)
    publication_id = db.Column(
        db.Integer, db.ForeignKey('publications.id', ondelete='CASCADE'), nullable=False, index=True
    )
    position = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(255), nullable=False)


class Publication(db.Model):
    __tablename__ = 'publications'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.String(DESCRIPTION_MAX_LENGTH), default='')
    category = db.Column(
        db.Enum(Category, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    content = db.Column(db.String(500), nullable=False)  # /uploads/publications/<file>
    doi = db.Column(db.String(255))
    date_of_publication = db.Column(db.Date, nullable=False, index=True)
    year_of_publication = db.Column(db.Integer, index=True)  # derived from date_of_publication
    volume = db.Column(db.String(100))

    status = db.Column(
        db.Enum(PublicationStatus, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=PublicationStatus.PENDING_REVIEW,
        index=True,
    )
    reviewer_comments = db.Column(db.Text, nullable=False, default='')
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    publisher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    authors = db.relationship(
        'PublicationAuthor',
        order_by=PublicationAuthor.position,
        cascade='all, delete-orphan',
        lazy='selectin',
    )
    publisher = db.relationship(
        'User', foreign_keys=[publisher_id], backref=db.backref('publications', lazy='dynamic')
    )
    reviewed_by = db.relationship(
        'User', foreign_keys=[reviewed_by_id], backref=db.backref('reviewed_publications', lazy='dynamic')
    )

    @property
    def author_names(self):
        return [author.name for author in self.authors]

    @author_names.setter
    def author_names(self, names):
        self.authors = [PublicationAuthor(position=i, name=name) for i, name in enumerate(names)]

    @validates('date_of_publication')
    def _sync_year(self, key, value):
        self.year_of_publication = value.year if value is not None else None
        return value

    def clear_review(self):
        self.reviewer_comments = ''
        self.reviewed_by = None

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description or '',
            'authorNames': self.author_names,
            'category': self.category.value,
            'content': self.content,
            'doi': self.doi,
            'dateOfPublication': self.date_of_publication.isoformat() if self.date_of_publication else None,
            'yearOfPublication': self.year_of_publication,
            'volume': self.volume,
            'status': self.status.value,
            'reviewerComments': self.reviewer_comments or '',
            'reviewedBy': self.reviewed_by.summary() if self.reviewed_by else None,
            'publisher': self.publisher.summary() if self.publisher else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Publication {self.id} {self.status.value}>'
