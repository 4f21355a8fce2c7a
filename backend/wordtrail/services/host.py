"""Host platform adapter: accounts, posts and comments.

The game core treats the host as an external collaborator. Everything
except post creation during category creation is advisory: callers go
through ``advisory()`` so a failing side effect is logged and never
surfaces as an error of the game operation.
"""

from typing import Optional

from flask import current_app
from flask_login import current_user as login_user_proxy
from sqlalchemy.exc import SQLAlchemyError

from wordtrail import db
from wordtrail.models import Comment, Post, User


class HostError(Exception):
    pass


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def advisory(name, call, *args, **kwargs):
    """Run a best-effort host call. Failures are logged and return None."""
    try:
        return call(*args, **kwargs)
    except Exception as exc:
        current_app.logger.warning(f"[advisory-failed] call={name} args={args} error={exc}")
        return None


class HostPlatform:
    # ---- identity ----

    def current_user(self) -> Optional[dict]:
        if not login_user_proxy or not login_user_proxy.is_authenticated:
            return None
        return {
            'id': login_user_proxy.user_id,
            'username': login_user_proxy.username,
            'is_moderator': bool(login_user_proxy.is_moderator),
        }

    def get_user(self, user_id) -> Optional[User]:
        pk = _as_int(user_id)
        return db.session.get(User, pk) if pk is not None else None

    def user_exists(self, user_id) -> bool:
        user = self.get_user(user_id)
        return user is not None and not user.deactivated

    # ---- content ----

    def _commit(self, action):
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise HostError(f'{action} failed: {exc}') from exc

    def _post(self, post_id) -> Post:
        pk = _as_int(post_id)
        post = db.session.get(Post, pk) if pk is not None else None
        if post is None:
            raise HostError(f'post {post_id} not found')
        return post

    def create_post(self, title: str, kind: str = 'category') -> dict:
        post = Post(title=title, kind=kind)
        db.session.add(post)
        self._commit('create_post')
        return {'id': str(post.id)}

    def approve_post(self, post_id) -> None:
        post = self._post(post_id)
        post.approved = True
        self._commit('approve_post')

    def remove_post(self, post_id) -> None:
        post = self._post(post_id)
        post.removed = True
        self._commit('remove_post')

    def add_comment(self, post_id, text: str) -> Optional[dict]:
        post = self._post(post_id)
        if post.removed:
            return None
        comment = Comment(post_id=post.id, text=text)
        db.session.add(comment)
        self._commit('add_comment')
        return {'id': str(comment.id)}

    def approve_comment(self, comment_id) -> None:
        pk = _as_int(comment_id)
        comment = db.session.get(Comment, pk) if pk is not None else None
        if comment is None:
            raise HostError(f'comment {comment_id} not found')
        comment.approved = True
        self._commit('approve_comment')
