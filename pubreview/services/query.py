"""Search, filter, sort and paginate publications for each audience."""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as date_parser
from flask import current_app

from pubreview.models import Category, Publication, PublicationAuthor, PublicationStatus
from pubreview.services import policy

DEFAULT_SORT = 'recent'

# Largest value an INTEGER column or bound parameter accepts
MAX_INT = 2 ** 31 - 1

SORT_OPTIONS = {
    'recent': Publication.created_at.desc(),
    'createdAt_desc': Publication.created_at.desc(),
    'createdAt_asc': Publication.created_at.asc(),
    'dateOfPublication_desc': Publication.date_of_publication.desc(),
    'dateOfPublication_asc': Publication.date_of_publication.asc(),
    'year_asc': Publication.year_of_publication.asc(),
    'year_desc': Publication.year_of_publication.desc(),
    'title_asc': Publication.title.asc(),
    'title_desc': Publication.title.desc(),
}

ADMIN_SORT_FIELDS = {
    'createdAt': Publication.created_at,
    'updatedAt': Publication.updated_at,
    'title': Publication.title,
    'dateOfPublication': Publication.date_of_publication,
    'yearOfPublication': Publication.year_of_publication,
    'status': Publication.status,
    'category': Publication.category,
}


# ==================== Input coercion ====================

def parse_int(value):
    """Integer value of a query argument, or None if it is malformed or out of range."""
    if value is None:
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    if not -MAX_INT <= number <= MAX_INT:
        return None
    return number


def parse_date(value):
    """Calendar date (UTC) of an ISO-8601 string, or None if it does not parse."""
    if not value or not str(value).strip():
        return None
    try:
        parsed = date_parser.isoparse(str(value).strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def parse_enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _text(value):
    value = (value or '').strip()
    return value or None


def _page_number(value):
    number = parse_int(value)
    return number if number is not None and number >= 1 else 1


def _page_size(value):
    size = parse_int(value)
    if size is None or size < 1:
        return current_app.config['DEFAULT_PAGE_SIZE']
    return size


def contains(column, term):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return column.ilike(f'%{escaped}%', escape='\\')


# ==================== Public search ====================

@dataclass
class PublicationFilters:
    category: Optional[Category] = None
    title: Optional[str] = None
    author_name: Optional[str] = None
    doi: Optional[str] = None
    year: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    specific_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sort_by: str = DEFAULT_SORT
    page: int = 1
    limit: int = 10

    @classmethod
    def from_args(cls, args):
        """Build filters from request query arguments; malformed values are dropped."""
        sort_by = args.get('sortBy') or DEFAULT_SORT
        return cls(
            category=parse_enum(Category, args.get('category')),
            title=_text(args.get('title')),
            author_name=_text(args.get('authorName')),
            doi=_text(args.get('doi')),
            year=parse_int(args.get('year')),
            start_year=parse_int(args.get('startYear')),
            end_year=parse_int(args.get('endYear')),
            specific_date=parse_date(args.get('specificDate')),
            start_date=parse_date(args.get('startDate')),
            end_date=parse_date(args.get('endDate')),
            sort_by=sort_by if sort_by in SORT_OPTIONS else DEFAULT_SORT,
            page=_page_number(args.get('page')),
            limit=_page_size(args.get('limit')),
        )

    def conditions(self):
        conditions = []
        if self.category is not None:
            conditions.append(Publication.category == self.category)
        if self.title:
            conditions.append(contains(Publication.title, self.title))
        if self.author_name:
            conditions.append(Publication.authors.any(contains(PublicationAuthor.name, self.author_name)))
        if self.doi:
            conditions.append(contains(Publication.doi, self.doi))

        # An exact year wins over the range
        if self.year is not None:
            conditions.append(Publication.year_of_publication == self.year)
        else:
            if self.start_year is not None:
                conditions.append(Publication.year_of_publication >= self.start_year)
            if self.end_year is not None:
                conditions.append(Publication.year_of_publication <= self.end_year)

        # A single day wins over the range; bounds cover whole UTC days
        if self.specific_date is not None:
            conditions.append(Publication.date_of_publication == self.specific_date)
        else:
            if self.start_date is not None:
                conditions.append(Publication.date_of_publication >= self.start_date)
            if self.end_date is not None:
                conditions.append(Publication.date_of_publication <= self.end_date)
        return conditions

    def order_by(self):
        return SORT_OPTIONS.get(self.sort_by, SORT_OPTIONS[DEFAULT_SORT]), Publication.id.desc()


def paginate(query, page, limit):
    return query.paginate(
        page=page, per_page=limit, error_out=False, max_per_page=current_app.config['MAX_PAGE_SIZE']
    )


def public_page(args):
    """Published publications only, with every search filter available."""
    filters = PublicationFilters.from_args(args)
    query = (
        Publication.query
        .filter(Publication.status == PublicationStatus.PUBLISHED, *filters.conditions())
        .order_by(*filters.order_by())
    )
    return paginate(query, filters.page, filters.limit)


# ==================== Scoped listings ====================

def owner_list(actor):
    policy.require(policy.can_list_own(actor))
    return (
        Publication.query
        .filter(Publication.publisher_id == actor.id)
        .order_by(Publication.created_at.desc(), Publication.id.desc())
        .all()
    )


def review_queue(actor):
    """Oldest submissions first, grouped by status."""
    statuses = policy.review_queue_statuses(actor)
    policy.require(bool(statuses))
    return (
        Publication.query
        .filter(Publication.status.in_(statuses))
        .order_by(Publication.status.asc(), Publication.created_at.asc(), Publication.id.asc())
        .all()
    )


def admin_page(actor, args):
    policy.require(policy.can_list_all(actor))
    conditions = []
    status = parse_enum(PublicationStatus, args.get('status'))
    if status is not None:
        conditions.append(Publication.status == status)
    category = parse_enum(Category, args.get('category'))
    if category is not None:
        conditions.append(Publication.category == category)
    publisher_id = parse_int(args.get('publisherId'))
    if publisher_id is not None:
        conditions.append(Publication.publisher_id == publisher_id)
    reviewer_id = parse_int(args.get('reviewerId'))
    if reviewer_id is not None:
        conditions.append(Publication.reviewed_by_id == reviewer_id)

    column = ADMIN_SORT_FIELDS.get(args.get('sortBy'), Publication.created_at)
    if args.get('sortOrder') == 'asc':
        order = (column.asc(), Publication.id.asc())
    else:
        order = (column.desc(), Publication.id.desc())

    query = Publication.query.filter(*conditions).order_by(*order)
    return paginate(query, _page_number(args.get('page')), _page_size(args.get('limit')))


def page_payload(page):
    """Response body for a page of publications."""
    return {
        'success': True,
        'count': len(page.items),
        'total': page.total,
        'pagination': {
            'currentPage': page.page,
            'totalPages': page.pages,
            'hasNextPage': page.has_next,
            'hasPrevPage': page.has_prev,
            'limit': page.per_page,
        },
        'data': [publication.to_dict() for publication in page.items],
    }
