# services/blog_service.py
"""
Blog post access: public paginated listing and owner-scoped CRUD

Listing uses offset pagination with a fixed page size. The page count is
computed from the post count read in the same call, so it always reflects
the table at read time; pages may shift between requests when posts are
added or removed.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from core.database_models import db, Post
from core.errors import NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class PostPage:
    """One page of the public listing"""
    posts: List[Post]
    page: int
    pages: int
    total: int
    sort: str
    per_page: int = 5
    has_prev: bool = field(init=False)
    has_next: bool = field(init=False)

    def __post_init__(self):
        self.has_prev = self.page > 1
        self.has_next = self.page < self.pages


def parse_page(raw) -> int:
    """1-based page number from a query value; anything unusable is page 1"""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def resolve_sort(raw: Optional[str]) -> str:
    """Sort field from a query value, limited to the configured allow-list"""
    allowed = current_app.config.get('SORTABLE_FIELDS', ('title',))
    default = current_app.config.get('DEFAULT_SORT_FIELD', 'title')
    if raw in allowed:
        return raw
    if raw:
        logger.debug("Rejected sort field %r, using %s", raw, default)
    return default


def clean_text(value: Optional[str]) -> str:
    return (value or '').strip()


def _validated_fields(title: Optional[str], body: Optional[str], message: str):
    title = clean_text(title)
    body = clean_text(body)
    if not title or not body:
        raise ValidationError(message)
    if len(title) > current_app.config.get('MAX_TITLE_LENGTH', 200):
        raise ValidationError('Title is too long.')
    return title, body


def _owner_scoped(query, owner_id: Optional[str]):
    if current_app.config.get('ENFORCE_POST_OWNERSHIP', True) and owner_id is not None:
        return query.filter(Post.user_id == owner_id)
    return query


def _store_failure(action: str, error: Exception, message: str = None) -> StoreError:
    db.session.rollback()
    logger.error("Failed to %s: %s", action, error, exc_info=True)
    return StoreError(message, detail=str(error))


def list_posts(page=1, sort=None) -> PostPage:
    """Public listing: one page of posts sorted ascending by an allowed field"""
    per_page = current_app.config.get('POSTS_PER_PAGE', 5)
    page = parse_page(page)
    sort = resolve_sort(sort)
    offset = (per_page * page) - per_page

    try:
        posts = (Post.query
                 .order_by(getattr(Post, sort).asc(), Post.id.asc())
                 .offset(offset)
                 .limit(per_page)
                 .all())
        total = Post.query.count()
    except SQLAlchemyError as e:
        raise _store_failure('list posts', e,
                             'Error fetching blogs. Please try again later.')

    return PostPage(
        posts=posts,
        page=page,
        pages=math.ceil(total / per_page),
        total=total,
        sort=sort,
        per_page=per_page,
    )


def list_owned_posts(owner_id: str) -> List[Post]:
    """Every post belonging to one user, newest first"""
    try:
        return (Post.query
                .filter(Post.user_id == owner_id)
                .order_by(Post.created_at.desc(), Post.id.desc())
                .all())
    except SQLAlchemyError as e:
        raise _store_failure('list owned posts', e, 'Error fetching your blogs.')


def create_post(owner_id: str, title: Optional[str], body: Optional[str]) -> Post:
    title, body = _validated_fields(title, body, 'Title and body are required.')
    post = Post(title=title, body=body, user_id=owner_id)
    try:
        db.session.add(post)
        db.session.commit()
    except SQLAlchemyError as e:
        raise _store_failure('create post', e, 'Error creating blog. Please try again.')

    logger.info("User %s created post %s", owner_id, post.id)
    return post


def get_post(post_id: Optional[str], owner_id: Optional[str] = None) -> Post:
    """Look up one post for editing"""
    if not post_id:
        raise NotFoundError(detail='Blog ID is required')
    try:
        post = _owner_scoped(Post.query.filter(Post.id == post_id), owner_id).first()
    except SQLAlchemyError as e:
        raise _store_failure('load post', e)

    if post is None:
        raise NotFoundError(detail=f'Blog {post_id} not found')
    return post


def update_post(post_id: Optional[str], title: Optional[str], body: Optional[str],
                owner_id: Optional[str] = None) -> int:
    """
    Update title and body by id.

    An id that matches nothing is not an error; the update simply touches
    no rows. Returns the number of rows changed.
    """
    if not post_id:
        raise ValidationError('Missing required fields', detail='Blog ID is required')
    title, body = _validated_fields(title, body, 'Missing required fields')

    try:
        updated = _owner_scoped(Post.query.filter(Post.id == post_id), owner_id).update(
            {'title': title, 'body': body}, synchronize_session=False
        )
        db.session.commit()
    except SQLAlchemyError as e:
        raise _store_failure('update post', e)

    if updated:
        logger.info("Updated post %s", post_id)
    else:
        logger.info("Update of post %s matched nothing", post_id)
    return updated


def delete_post(post_id: Optional[str], owner_id: Optional[str] = None) -> None:
    """
    Delete by id.

    Raises:
        NotFoundError: missing id, or nothing was deleted
        StoreError: database failure
    """
    if not post_id:
        raise NotFoundError(detail='Blog ID is missing')

    try:
        deleted = _owner_scoped(Post.query.filter(Post.id == post_id), owner_id).delete(
            synchronize_session=False
        )
        db.session.commit()
    except SQLAlchemyError as e:
        raise _store_failure('delete post', e)

    if not deleted:
        raise NotFoundError(detail=f'Blog {post_id} not found')
    logger.info("Deleted post %s", post_id)
