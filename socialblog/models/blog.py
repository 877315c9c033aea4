from django.conf import settings
from django.db import models
from django.utils import timezone


class Blog(models.Model):
    """
    A post published by a user.

    Fields:
        - author: The owning user. Deleting the user deletes their blogs.
        - title / body: The post content.
        - cover_image_url: Optional image shown above the post.
        - likes: Users who liked the post. Its reverse accessor on User is
          ``liked_blogs``, so the blog like-set and the user liked-set are the
          same rows.
        - created_at / updated_at: Timestamps; listings are newest-first by
          ``created_at``.

    Deleting a blog cascades to its comments and to every notification that
    references it.
    """
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="blogs",
        on_delete=models.CASCADE,
    )

    title = models.CharField(max_length=200)
    body = models.TextField()
    cover_image_url = models.URLField(blank=True)

    likes = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="liked_blogs",
        blank=True,
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.title} ({self.author})"
