import logging

from socialblog.models import Notification

logger = logging.getLogger(__name__)


LIKE_MESSAGE = "{sender} liked your post: {title}"
COMMENT_MESSAGE = '{sender} commented on your post "{title}"'
REPLY_MESSAGE = "{sender} replied to your comment"
FOLLOW_REQUEST_MESSAGE = "{sender} requested to follow you"
FOLLOW_MESSAGE = "{sender} started following you"


class NotificationLedger:
    """
    Records, reverses and looks up interaction events.

    - record_interaction never writes a self-addressed record and never
      writes a second LIKE for the same (sender, recipient, blog), nor a
      second PENDING follow request for the same (sender, recipient).
    - reverse_interaction deletes the matching record, if any.
    - has_pending answers "is there an outstanding follow request".
    """

    def __init__(self, notifications):
        self.notifications = notifications

    def record_interaction(self, sender_id, recipient_id, type, blog_id=None, message="", content=""):
        """
        Store one interaction event and return it.

        Returns None without writing when sender and recipient are the same
        user. For LIKE events, and for follow requests while one is pending,
        an existing matching record is returned unchanged.
        """
        if sender_id == recipient_id:
            logger.debug("Skipping self-addressed %s notification for user %s", type, sender_id)
            return None

        status = Notification.default_status(type)
        if type == Notification.LIKE:
            lookup = {"sender_id": sender_id, "recipient_id": recipient_id, "type": type, "blog_id": blog_id}
        elif type == Notification.FOLLOW_REQUEST:
            lookup = {"sender_id": sender_id, "recipient_id": recipient_id, "type": type, "status": status}
        else:
            return self.notifications.create(
                sender_id=sender_id,
                recipient_id=recipient_id,
                type=type,
                blog_id=blog_id,
                status=status,
                message=message,
                content=content,
            )

        # get_or_create re-reads after losing an insert race to the unique constraint.
        defaults = {"blog_id": blog_id, "status": status, "message": message, "content": content}
        notification, created = self.notifications.get_or_create(defaults, **lookup)
        if not created:
            logger.debug("Reusing existing %s notification %s", type, notification.pk)
        return notification

    def reverse_interaction(self, sender_id, recipient_id, type, blog_id=None) -> int:
        """Delete the matching record. Returns how many rows went away."""
        lookup = {"sender_id": sender_id, "recipient_id": recipient_id, "type": type}
        if blog_id is not None:
            lookup["blog_id"] = blog_id
        if type == Notification.FOLLOW_REQUEST:
            lookup["status"] = Notification.PENDING
        return self.notifications.delete_matching(**lookup)

    def has_pending(self, sender_id, recipient_id, type=Notification.FOLLOW_REQUEST) -> bool:
        return self.notifications.exists(
            sender_id=sender_id,
            recipient_id=recipient_id,
            type=type,
            status=Notification.PENDING,
        )

    def pending_recipients(self, sender_id, recipient_ids) -> set:
        """Batched has_pending: the subset of recipients with a pending request."""
        return self.notifications.pending_recipients(sender_id, recipient_ids)

    def purge_blog(self, blog_id) -> int:
        """Delete every notification that references ``blog_id``."""
        return self.notifications.delete_matching(blog_id=blog_id)

    def inbox(self, recipient_id, unread_only=False) -> list:
        return self.notifications.for_recipient(recipient_id, unread_only=unread_only)

    def unread_count(self, recipient_id) -> int:
        return self.notifications.unread_count(recipient_id)

    def mark_read(self, recipient_id, ids=None) -> int:
        return self.notifications.mark_read(recipient_id, ids)
