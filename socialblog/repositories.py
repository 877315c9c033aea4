"""
Storage collaborators for the engagement engine.

Each repository wraps the Django ORM for one entity and is the only place the
services touch querysets. Database failures surface as StorageError and
missing rows as NotFound; nothing here retries.
"""
import logging
from collections import defaultdict
from contextlib import contextmanager

from django.db import DatabaseError
from django.db.models import Q

from .errors import NotFound, StorageError
from .models import Blog, Comment, Notification, User

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation):
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Storage failure during %s", operation)
        raise StorageError() from exc


class UserRepository:

    def get(self, user_id) -> User:
        with storage_errors("user lookup"):
            try:
                return User.objects.get(pk=user_id)
            except User.DoesNotExist:
                raise NotFound("User not found.") from None

    def is_follower(self, owner, user_id) -> bool:
        """Return True when ``user_id`` is in ``owner``'s followers."""
        with storage_errors("follower check"):
            return owner.followers.filter(pk=user_id).exists()

    def following_ids(self, user_id) -> set:
        """Ids of every user that ``user_id`` follows."""
        with storage_errors("following lookup"):
            return set(User.objects.filter(followers__pk=user_id).values_list("pk", flat=True))

    def add_follower(self, target, follower_id):
        with storage_errors("add follower"):
            target.followers.add(follower_id)

    def remove_follower(self, target, follower_id) -> bool:
        with storage_errors("remove follower"):
            if not target.followers.filter(pk=follower_id).exists():
                return False
            target.followers.remove(follower_id)
            return True

    def follow_counts(self, user) -> tuple:
        with storage_errors("follow counts"):
            return user.followers.count(), user.following.count()

    def common_followers(self, user_id, other_id) -> list:
        """Users who follow both ``user_id`` and ``other_id``."""
        with storage_errors("common followers"):
            return list(
                User.objects.filter(following__pk=user_id)
                .filter(following__pk=other_id)
                .distinct()
                .order_by("fullname", "pk")
            )

    def search(self, query) -> list:
        with storage_errors("user search"):
            return list(
                User.objects.filter(Q(fullname__icontains=query) | Q(email__icontains=query))
                .prefetch_related("followers")
                .order_by("fullname", "pk")
            )

    def email_taken(self, email, exclude_id) -> bool:
        with storage_errors("email check"):
            return User.objects.filter(email__iexact=email).exclude(pk=exclude_id).exists()

    def update_profile(self, user_id, **fields) -> User:
        user = self.get(user_id)
        with storage_errors("profile update"):
            for name, value in fields.items():
                setattr(user, name, value)
            user.save(update_fields=list(fields))
        return user

    def set_privacy(self, user_id, is_private) -> User:
        user = self.get(user_id)
        with storage_errors("privacy update"):
            user.is_private = is_private
            user.save(update_fields=["is_private"])
        return user


class BlogRepository:

    def _base(self):
        return Blog.objects.select_related("author").prefetch_related("author__followers")

    def get(self, blog_id, for_update=False) -> Blog:
        with storage_errors("blog lookup"):
            qs = Blog.objects.select_related("author")
            if for_update:
                qs = qs.select_for_update()
            try:
                return qs.get(pk=blog_id)
            except Blog.DoesNotExist:
                raise NotFound("Blog not found.") from None

    def visible_to(self, viewer_id=None):
        """
        Blogs ``viewer_id`` may see, newest first. Same rule as
        ``services.visibility.can_view``, evaluated in SQL.
        """
        visible = Q(author__is_private=False)
        if viewer_id is not None:
            visible |= Q(author_id=viewer_id) | Q(author__followers=viewer_id)
        # The followers join repeats a blog once per follower of its author.
        return self._base().filter(visible).distinct().order_by("-created_at", "-pk")

    def visible_page(self, viewer_id, offset, limit) -> tuple:
        """One page of ``visible_to`` plus the total number of visible blogs."""
        with storage_errors("blog listing"):
            qs = self.visible_to(viewer_id)
            return list(qs[offset:offset + limit]), qs.count()

    def by_author(self, author_id) -> list:
        with storage_errors("blog listing"):
            return list(self._base().filter(author_id=author_id).order_by("-created_at", "-pk"))

    def search(self, query) -> list:
        with storage_errors("blog search"):
            return list(
                self._base()
                .filter(Q(title__icontains=query) | Q(body__icontains=query))
                .order_by("-created_at", "-pk")
            )

    def create(self, author_id, title, body, cover_image_url="") -> Blog:
        with storage_errors("blog insert"):
            return Blog.objects.create(
                author_id=author_id,
                title=title,
                body=body,
                cover_image_url=cover_image_url,
            )

    def delete(self, blog):
        with storage_errors("blog delete"):
            blog.delete()

    def has_liked(self, blog, user_id) -> bool:
        with storage_errors("like check"):
            return blog.likes.filter(pk=user_id).exists()

    def add_like(self, blog, user_id):
        with storage_errors("like insert"):
            blog.likes.add(user_id)

    def remove_like(self, blog, user_id):
        with storage_errors("like delete"):
            blog.likes.remove(user_id)

    def like_count(self, blog) -> int:
        with storage_errors("like count"):
            return blog.likes.count()

    def likers_for(self, blog_ids) -> dict:
        """Map each blog id to its likers in the order the likes were made."""
        likers = defaultdict(list)
        with storage_errors("liker lookup"):
            rows = (
                Blog.likes.through.objects.filter(blog_id__in=list(blog_ids))
                .select_related("user")
                .order_by("id")
            )
            for row in rows:
                likers[row.blog_id].append(row.user)
        return likers


class CommentRepository:

    def _base(self):
        return Comment.objects.select_related("author").prefetch_related("likes")

    def get(self, comment_id) -> Comment:
        with storage_errors("comment lookup"):
            try:
                return Comment.objects.select_related("author", "blog__author", "parent").get(pk=comment_id)
            except Comment.DoesNotExist:
                raise NotFound("Comment not found.") from None

    def top_level(self, blog_ids) -> list:
        """Top-level comments of the given blogs, newest first."""
        with storage_errors("comment listing"):
            return list(
                self._base()
                .filter(blog_id__in=list(blog_ids), parent__isnull=True)
                .order_by("-created_at", "-pk")
            )

    def replies(self, parent_ids) -> list:
        """
        Replies under the given top-level comments, newest first.

        Rows nested one level deeper than allowed are included too so the
        assembler can fold them under their top-level ancestor.
        """
        parent_ids = list(parent_ids)
        with storage_errors("reply listing"):
            return list(
                self._base()
                .select_related("parent")
                .filter(Q(parent__in=parent_ids) | Q(parent__parent__in=parent_ids))
                .order_by("-created_at", "-pk")
            )

    def create(self, blog_id, author_id, content, parent_id=None) -> Comment:
        with storage_errors("comment insert"):
            return Comment.objects.create(
                blog_id=blog_id,
                author_id=author_id,
                content=content,
                parent_id=parent_id,
            )

    def delete(self, comment):
        with storage_errors("comment delete"):
            comment.delete()

    def delete_for_blog(self, blog_id) -> int:
        with storage_errors("comment delete"):
            deleted, _ = Comment.objects.filter(blog_id=blog_id).delete()
            return deleted

    def has_liked(self, comment, user_id) -> bool:
        with storage_errors("comment like check"):
            return comment.likes.filter(pk=user_id).exists()

    def add_like(self, comment, user_id):
        with storage_errors("comment like insert"):
            comment.likes.add(user_id)

    def remove_like(self, comment, user_id):
        with storage_errors("comment like delete"):
            comment.likes.remove(user_id)

    def like_count(self, comment) -> int:
        with storage_errors("comment like count"):
            return comment.likes.count()


class NotificationRepository:

    def get(self, notification_id) -> Notification:
        with storage_errors("notification lookup"):
            try:
                return Notification.objects.select_related("sender", "recipient").get(pk=notification_id)
            except Notification.DoesNotExist:
                raise NotFound("Notification not found.") from None

    def find(self, **lookup):
        with storage_errors("notification lookup"):
            return Notification.objects.filter(**lookup).first()

    def exists(self, **lookup) -> bool:
        with storage_errors("notification lookup"):
            return Notification.objects.filter(**lookup).exists()

    def get_or_create(self, defaults, **lookup):
        with storage_errors("notification insert"):
            return Notification.objects.get_or_create(defaults=defaults, **lookup)

    def create(self, **fields) -> Notification:
        with storage_errors("notification insert"):
            return Notification.objects.create(**fields)

    def save(self, notification, update_fields=None):
        with storage_errors("notification update"):
            notification.save(update_fields=update_fields)

    def delete_matching(self, **lookup) -> int:
        with storage_errors("notification delete"):
            deleted, _ = Notification.objects.filter(**lookup).delete()
            return deleted

    def pending_recipients(self, sender_id, recipient_ids) -> set:
        with storage_errors("pending request lookup"):
            return set(
                Notification.objects.pending()
                .filter(sender_id=sender_id, recipient_id__in=list(recipient_ids))
                .values_list("recipient_id", flat=True)
            )

    def for_recipient(self, recipient_id, unread_only=False) -> list:
        with storage_errors("notification listing"):
            qs = Notification.objects.filter(recipient_id=recipient_id)
            if unread_only:
                qs = qs.unread()
            return list(qs.select_related("sender", "blog").order_by("-created_at", "-pk"))

    def unread_count(self, recipient_id) -> int:
        with storage_errors("notification count"):
            return Notification.objects.filter(recipient_id=recipient_id).unread().count()

    def mark_read(self, recipient_id, ids=None) -> int:
        with storage_errors("notification update"):
            qs = Notification.objects.filter(recipient_id=recipient_id).unread()
            if ids is not None:
                qs = qs.filter(pk__in=list(ids))
            return qs.update(status=Notification.READ)


class Repositories:
    """The four repositories the services are built from."""

    def __init__(self, users=None, blogs=None, comments=None, notifications=None):
        self.users = users or UserRepository()
        self.blogs = blogs or BlogRepository()
        self.comments = comments or CommentRepository()
        self.notifications = notifications or NotificationRepository()
