from django.conf import settings
from django.db import models
from django.utils import timezone


class Comment(models.Model):
    """
    A comment on a blog, or a reply to one.

    A comment whose ``parent`` is set is a reply. Replies are never nested:
    ``parent`` always points at a top-level comment of the same blog, and
    replying to a reply attaches the new reply to that reply's parent.
    """
    blog = models.ForeignKey(
        "socialblog.Blog",
        on_delete=models.CASCADE,
        related_name="comments",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="comments",
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        related_name="replies",
        null=True,
        blank=True,
    )
    content = models.TextField()
    likes = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="liked_comments",
        blank=True,
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    def __str__(self):
        return f"Comment by {self.author} on {self.blog_id}"
