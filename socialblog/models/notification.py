from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class NotificationQuerySet(models.QuerySet):

    def informational(self):
        return self.exclude(type=Notification.FOLLOW_REQUEST)

    def follow_requests(self):
        return self.filter(type=Notification.FOLLOW_REQUEST)

    def pending(self):
        return self.follow_requests().filter(status=Notification.PENDING)

    def unread(self):
        return self.informational().filter(status=Notification.UNREAD)


class Notification(models.Model):
    """
    One interaction event addressed from ``sender`` to ``recipient``.

    The table holds two families of records that share storage:

    - informational events (FOLLOW, LIKE, COMMENT, REPLY) with status
      UNREAD or READ, shown in the recipient's notification list;
    - follow requests (FOLLOW_REQUEST) with status PENDING, ACCEPTED or
      REJECTED. A PENDING follow request is the only record of an outstanding
      request; there is no separate request table.

    Notes:
        - ``blog`` is set for LIKE, COMMENT and REPLY and cascades on delete.
        - sender == recipient is rejected by a check constraint; the ledger
          never tries to write one.
        - At most one LIKE per (sender, recipient, blog) and one PENDING
          request per (sender, recipient) are enforced by partial unique
          constraints.
    """
    FOLLOW_REQUEST = "FOLLOW_REQUEST"
    FOLLOW = "FOLLOW"
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    REPLY = "REPLY"

    TYPE_CHOICES = [
        (FOLLOW_REQUEST, "Follow request"),
        (FOLLOW, "Follow"),
        (LIKE, "Like"),
        (COMMENT, "Comment"),
        (REPLY, "Reply"),
    ]

    UNREAD = "UNREAD"
    READ = "READ"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    STATUS_CHOICES = [
        (UNREAD, "Unread"),
        (READ, "Read"),
        (PENDING, "Pending"),
        (ACCEPTED, "Accepted"),
        (REJECTED, "Rejected"),
    ]

    INFORMATIONAL_STATUSES = (UNREAD, READ)
    REQUEST_STATUSES = (PENDING, ACCEPTED, REJECTED)

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="notifications",
        on_delete=models.CASCADE,
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="sent_notifications",
        on_delete=models.CASCADE,
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    blog = models.ForeignKey(
        "socialblog.Blog",
        related_name="notifications",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    message = models.CharField(max_length=300)
    content = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["sender", "recipient", "type", "status"],
                name="notif_lookup_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sender=F("recipient")),
                name="notif_not_self",
            ),
            models.UniqueConstraint(
                fields=["sender", "recipient", "blog"],
                condition=Q(type="LIKE"),
                name="notif_unique_like",
            ),
            models.UniqueConstraint(
                fields=["sender", "recipient"],
                condition=Q(type="FOLLOW_REQUEST", status="PENDING"),
                name="notif_unique_pending_request",
            ),
        ]

    @property
    def is_follow_request(self) -> bool:
        return self.type == self.FOLLOW_REQUEST

    @classmethod
    def default_status(cls, type):
        return cls.PENDING if type == cls.FOLLOW_REQUEST else cls.UNREAD

    def clean(self):
        allowed = self.REQUEST_STATUSES if self.is_follow_request else self.INFORMATIONAL_STATUSES
        if self.status not in allowed:
            raise ValidationError({"status": f"{self.status} is not a valid status for {self.type}."})
        if self.sender_id is not None and self.sender_id == self.recipient_id:
            raise ValidationError("A notification cannot be addressed to its sender.")

    def __str__(self):
        return f"{self.type} {self.sender_id} -> {self.recipient_id} ({self.status})"
