from django.contrib.auth.models import AbstractUser
from django.db import models

FIELD_MAX_LENGTH = 60


class User(AbstractUser):
    """
    A member of the platform. Inherits credentials and the auth fields from
    Django's AbstractUser and adds the profile and privacy fields.

    Fields:
        fullname (str): Public name shown next to posts and in notifications.
        bio (str, optional): Short profile text.
        profile_image_url (str, optional): Avatar URL.
        is_private (bool): When set, only the user and their followers can see
            the user's blogs.
        followers (M2M to User): Users following this user. The reverse side,
            ``following``, lists the users this user follows, so both sets are
            backed by a single relation.

    Notes:
        - A user never appears in their own followers; the follow service
          refuses self-follows.
        - ``liked_blogs`` and ``liked_comments`` are reverse accessors of the
          ``likes`` relations on Blog and Comment.
    """
    username = models.CharField(max_length=FIELD_MAX_LENGTH, unique=True)
    fullname = models.CharField(max_length=FIELD_MAX_LENGTH)
    bio = models.TextField(blank=True)
    profile_image_url = models.URLField(blank=True)

    is_private = models.BooleanField(default=False)

    followers = models.ManyToManyField(
        "self",
        symmetrical=False,
        related_name="following",
        blank=True,
    )

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return self.fullname or self.username
