import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import transaction

from socialblog.conf import get_setting
from socialblog.errors import Conflict, Forbidden, Unauthenticated
from socialblog.models import Notification
from socialblog.repositories import Repositories

from .comment_threads import CommentThread, CommentThreadAssembler
from .follow_state import FOLLOWING, OWN, resolve_status, resolve_statuses
from .notifications import COMMENT_MESSAGE, LIKE_MESSAGE, REPLY_MESSAGE, NotificationLedger
from .visibility import can_view, ensure_can_view, visible_blogs

logger = logging.getLogger(__name__)


@dataclass
class Liker:
    user: object
    follow_status: str


@dataclass
class BlogCard:
    """A visible blog plus everything derived for the current viewer."""
    blog: object
    follow_status: str
    likers: List[Liker] = field(default_factory=list)
    thread: CommentThread = field(default_factory=CommentThread)

    @property
    def is_own(self) -> bool:
        return self.follow_status == OWN

    @property
    def is_following(self) -> bool:
        return self.follow_status == FOLLOWING

    @property
    def likes_count(self) -> int:
        return len(self.likers)

    @property
    def total_comments(self) -> int:
        return self.thread.total_comments


@dataclass
class FeedPage:
    cards: List[BlogCard]
    count: int
    page: int
    size: int


@dataclass
class UserResult:
    user: object
    follow_status: str


@dataclass
class SearchResults:
    query: str = ""
    users: List[UserResult] = field(default_factory=list)
    blogs: List[BlogCard] = field(default_factory=list)


@dataclass
class Profile:
    user: object
    follow_status: str
    followers_count: int
    following_count: int
    can_view: bool
    blogs: List[BlogCard] = field(default_factory=list)
    common_followers: list = field(default_factory=list)


@dataclass
class LikeResult:
    liked: bool
    likes_count: int


def require_viewer(viewer, detail="Please log in to continue."):
    if viewer is None:
        raise Unauthenticated(detail)


class EngagementService:
    """
    Use cases that combine visibility, follow state, comment threads and the
    notification ledger. Every listing, detail page and interaction goes
    through here so the rules live in one place.
    """

    def __init__(self, repositories: Optional[Repositories] = None):
        self.repos = repositories or Repositories()
        self.ledger = NotificationLedger(self.repos.notifications)
        self.threads = CommentThreadAssembler(self.repos.comments)

    # Read models

    def build_cards(self, viewer, blogs) -> List[BlogCard]:
        """
        Turn candidate blogs into cards for ``viewer``.

        Blogs the viewer may not see are dropped silently. The remaining
        cards keep the input order. Follow states for every owner and liker
        on the page are resolved in one batch.
        """
        admitted = visible_blogs(viewer, blogs)
        if not admitted:
            return []

        blog_ids = [blog.pk for blog in admitted]
        likers = self.repos.blogs.likers_for(blog_ids)
        people = {blog.author.pk: blog.author for blog in admitted}
        for users in likers.values():
            people.update((user.pk, user) for user in users)

        statuses = resolve_statuses(viewer, people.values(), self.ledger, self.repos.users)
        threads = self.threads.assemble_many(blog_ids)

        return [
            BlogCard(
                blog=blog,
                follow_status=statuses[blog.author.pk],
                likers=[Liker(user=user, follow_status=statuses[user.pk]) for user in likers.get(blog.pk, [])],
                thread=threads[blog.pk],
            )
            for blog in admitted
        ]

    def feed(self, viewer, page=1, size=None) -> FeedPage:
        """
        One page of every blog ``viewer`` may see, newest first.

        Visibility and paging run in the database. A missing or zero size
        means FEED_PAGE_SIZE; sizes are clamped to 1..MAX_PAGE_SIZE and pages
        below 1 become page 1.
        """
        size = max(1, min(size or get_setting("FEED_PAGE_SIZE"), get_setting("MAX_PAGE_SIZE")))
        page = max(page or 1, 1)

        viewer_id = viewer.id if viewer is not None else None
        blogs, count = self.repos.blogs.visible_page(viewer_id, (page - 1) * size, size)
        return FeedPage(cards=self.build_cards(viewer, blogs), count=count, page=page, size=size)

    def blog_detail(self, viewer, blog_id) -> BlogCard:
        blog = self.repos.blogs.get(blog_id)
        ensure_can_view(viewer, blog.author)
        return self.build_cards(viewer, [blog])[0]

    def comment_thread(self, viewer, blog_id) -> CommentThread:
        blog = self.repos.blogs.get(blog_id)
        ensure_can_view(viewer, blog.author)
        return self.threads.assemble(blog.pk)

    def search(self, viewer, query) -> SearchResults:
        query = (query or "").strip()
        if len(query) < get_setting("SEARCH_MIN_LENGTH"):
            return SearchResults(query=query)

        users = self.repos.users.search(query)
        statuses = resolve_statuses(viewer, users, self.ledger, self.repos.users)
        return SearchResults(
            query=query,
            users=[UserResult(user=user, follow_status=statuses[user.pk]) for user in users],
            blogs=self.build_cards(viewer, self.repos.blogs.search(query)),
        )

    def profile(self, viewer, user_id) -> Profile:
        user = self.repos.users.get(user_id)
        followers_count, following_count = self.repos.users.follow_counts(user)
        visible = can_view(viewer, user)

        common = []
        if viewer is not None and viewer.id != user.pk:
            common = self.repos.users.common_followers(user.pk, viewer.id)

        return Profile(
            user=user,
            follow_status=resolve_status(viewer, user, self.ledger, self.repos.users),
            followers_count=followers_count,
            following_count=following_count,
            can_view=visible,
            blogs=self.build_cards(viewer, self.repos.blogs.by_author(user.pk)) if visible else [],
            common_followers=common,
        )

    # Blogs

    def create_blog(self, viewer, title, body, cover_image_url=""):
        require_viewer(viewer, "Please log in to publish a blog.")
        blog = self.repos.blogs.create(viewer.id, title, body, cover_image_url)
        logger.info("User %s published blog %s", viewer.id, blog.pk)
        return blog

    def delete_blog(self, viewer, blog_id):
        """Delete a blog with its comments and every notification pointing at it."""
        require_viewer(viewer, "Please log in to delete a blog.")
        with transaction.atomic():
            blog = self.repos.blogs.get(blog_id, for_update=True)
            if blog.author_id != viewer.id:
                raise Forbidden("Unauthorized to delete this blog.")
            purged = self.ledger.purge_blog(blog.pk)
            comments = self.repos.comments.delete_for_blog(blog.pk)
            self.repos.blogs.delete(blog)
        logger.info(
            "Blog %s deleted by %s (%d comments, %d notifications removed)",
            blog_id, viewer.id, comments, purged,
        )

    def toggle_like(self, viewer, blog_id) -> LikeResult:
        """
        Like the blog if the viewer has not liked it yet, otherwise unlike it.

        The like row and the LIKE notification change in one transaction
        while the blog row is locked, so two concurrent toggles by the same
        viewer serialize instead of interleaving.
        """
        require_viewer(viewer, "Please log in to like a blog.")
        blogs = self.repos.blogs
        with transaction.atomic():
            blog = blogs.get(blog_id, for_update=get_setting("LOCK_ON_TOGGLE"))
            ensure_can_view(viewer, blog.author)

            if blogs.has_liked(blog, viewer.id):
                blogs.remove_like(blog, viewer.id)
                self.ledger.reverse_interaction(viewer.id, blog.author_id, Notification.LIKE, blog.pk)
                liked = False
            else:
                blogs.add_like(blog, viewer.id)
                self.ledger.record_interaction(
                    viewer.id,
                    blog.author_id,
                    Notification.LIKE,
                    blog_id=blog.pk,
                    message=LIKE_MESSAGE.format(sender=viewer.fullname, title=blog.title),
                )
                liked = True
            likes_count = blogs.like_count(blog)

        logger.info("User %s %s blog %s", viewer.id, "liked" if liked else "unliked", blog.pk)
        return LikeResult(liked=liked, likes_count=likes_count)

    # Comments

    def post_comment(self, viewer, blog_id, content):
        require_viewer(viewer, "Please log in to add a comment.")
        with transaction.atomic():
            blog = self.repos.blogs.get(blog_id)
            ensure_can_view(viewer, blog.author)
            comment = self.repos.comments.create(blog.pk, viewer.id, content)
            self.ledger.record_interaction(
                viewer.id,
                blog.author_id,
                Notification.COMMENT,
                blog_id=blog.pk,
                message=COMMENT_MESSAGE.format(sender=viewer.fullname, title=blog.title),
                content=content,
            )
        return comment

    def post_reply(self, viewer, parent_id, content):
        """
        Reply to a comment. Replying to a reply files the new reply under the
        same top-level comment; the author of the comment actually replied to
        is the one notified.
        """
        require_viewer(viewer, "Please log in to reply.")
        with transaction.atomic():
            parent = self.repos.comments.get(parent_id)
            blog = parent.blog
            ensure_can_view(viewer, blog.author)
            anchor_id = parent.parent_id or parent.pk
            reply = self.repos.comments.create(blog.pk, viewer.id, content, parent_id=anchor_id)
            self.ledger.record_interaction(
                viewer.id,
                parent.author_id,
                Notification.REPLY,
                blog_id=blog.pk,
                message=REPLY_MESSAGE.format(sender=viewer.fullname),
                content=content,
            )
        return reply

    def delete_comment(self, viewer, comment_id):
        # Notifications that mention the comment are left in place.
        require_viewer(viewer, "Please log in to delete a comment.")
        comment = self.repos.comments.get(comment_id)
        ensure_can_view(viewer, comment.blog.author)
        if comment.author_id != viewer.id:
            raise Forbidden("Unauthorized to delete this comment.")
        self.repos.comments.delete(comment)
        logger.info("Comment %s deleted by %s", comment_id, viewer.id)

    def like_comment(self, viewer, comment_id) -> int:
        require_viewer(viewer, "Please log in to like a comment.")
        comments = self.repos.comments
        with transaction.atomic():
            comment = comments.get(comment_id)
            ensure_can_view(viewer, comment.blog.author)
            if comments.has_liked(comment, viewer.id):
                raise Conflict("You have already liked this comment.")
            comments.add_like(comment, viewer.id)
            return comments.like_count(comment)

    def unlike_comment(self, viewer, comment_id) -> int:
        require_viewer(viewer, "Please log in to unlike a comment.")
        comments = self.repos.comments
        with transaction.atomic():
            comment = comments.get(comment_id)
            ensure_can_view(viewer, comment.blog.author)
            if not comments.has_liked(comment, viewer.id):
                raise Conflict("You have not liked this comment.")
            comments.remove_like(comment, viewer.id)
            return comments.like_count(comment)

    # Notifications

    def notifications(self, viewer, unread_only=False) -> list:
        require_viewer(viewer)
        return self.ledger.inbox(viewer.id, unread_only=unread_only)

    def unread_count(self, viewer) -> int:
        require_viewer(viewer)
        return self.ledger.unread_count(viewer.id)

    def mark_notifications_read(self, viewer, ids=None) -> int:
        require_viewer(viewer)
        return self.ledger.mark_read(viewer.id, ids)
