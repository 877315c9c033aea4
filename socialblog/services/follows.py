import logging
from typing import Optional

from django.db import transaction
from rest_framework.exceptions import ValidationError

from socialblog.errors import Conflict, Forbidden
from socialblog.models import Notification
from socialblog.repositories import Repositories

from .engagement import require_viewer
from .follow_state import FOLLOW, FOLLOWING, REQUESTED
from .notifications import FOLLOW_MESSAGE, FOLLOW_REQUEST_MESSAGE, NotificationLedger

logger = logging.getLogger(__name__)


class FollowService:
    """
    Follow, unfollow and follow-request handling.

    Following a public account takes effect immediately. Following a private
    account leaves a PENDING FOLLOW_REQUEST notification that the target
    accepts or rejects; that notification is the request.
    """

    def __init__(self, repositories: Optional[Repositories] = None):
        self.repos = repositories or Repositories()
        self.ledger = NotificationLedger(self.repos.notifications)

    def follow(self, viewer, target_id) -> str:
        """Follow or request to follow ``target_id``; returns the new label."""
        require_viewer(viewer, "Please log in to follow users.")
        users = self.repos.users
        with transaction.atomic():
            target = users.get(target_id)
            if target.pk == viewer.id:
                raise Conflict("You cannot follow yourself.")
            if users.is_follower(target, viewer.id):
                raise Conflict("You are already following this user.")

            if target.is_private:
                self.ledger.record_interaction(
                    viewer.id,
                    target.pk,
                    Notification.FOLLOW_REQUEST,
                    message=FOLLOW_REQUEST_MESSAGE.format(sender=viewer.fullname),
                )
                logger.info("User %s requested to follow %s", viewer.id, target.pk)
                return REQUESTED

            users.add_follower(target, viewer.id)
            # A request left over from when the account was private is moot now.
            self.ledger.reverse_interaction(viewer.id, target.pk, Notification.FOLLOW_REQUEST)
            self.ledger.record_interaction(
                viewer.id,
                target.pk,
                Notification.FOLLOW,
                message=FOLLOW_MESSAGE.format(sender=viewer.fullname),
            )
        logger.info("User %s followed %s", viewer.id, target.pk)
        return FOLLOWING

    def unfollow(self, viewer, target_id) -> str:
        """Stop following ``target_id``, or withdraw a pending request."""
        require_viewer(viewer, "Please log in to unfollow users.")
        users = self.repos.users
        with transaction.atomic():
            target = users.get(target_id)
            if users.remove_follower(target, viewer.id):
                logger.info("User %s unfollowed %s", viewer.id, target.pk)
                return FOLLOW
            if self.ledger.reverse_interaction(viewer.id, target.pk, Notification.FOLLOW_REQUEST):
                logger.info("User %s withdrew follow request to %s", viewer.id, target.pk)
                return FOLLOW
        raise Conflict("You are not following this user.")

    def respond(self, viewer, notification_id, accept) -> Notification:
        """Accept or reject a pending follow request addressed to ``viewer``."""
        require_viewer(viewer, "Please log in to manage follow requests.")
        notifications = self.repos.notifications
        with transaction.atomic():
            request = notifications.get(notification_id)
            if request.recipient_id != viewer.id:
                raise Forbidden("This follow request is not addressed to you.")
            if not request.is_follow_request:
                raise Conflict("This notification is not a follow request.")
            if request.status != Notification.PENDING:
                raise Conflict("This follow request has already been answered.")

            if accept:
                self.repos.users.add_follower(request.recipient, request.sender_id)
                request.status = Notification.ACCEPTED
            else:
                request.status = Notification.REJECTED
            notifications.save(request, update_fields=["status", "updated_at"])

        logger.info(
            "User %s %s follow request from %s",
            viewer.id, "accepted" if accept else "rejected", request.sender_id,
        )
        return request

    def update_profile(self, viewer, fullname=None, email=None, bio=None):
        """Change the viewer's public profile fields; omitted fields stay as they are."""
        require_viewer(viewer, "Please log in to update your profile.")
        fields = {}
        if fullname:
            fields["fullname"] = fullname
        if email:
            if self.repos.users.email_taken(email, viewer.id):
                raise Conflict("Email already in use.")
            fields["email"] = email
        if bio:
            fields["bio"] = bio
        if not fields:
            raise ValidationError({"detail": "No changes provided."})

        user = self.repos.users.update_profile(viewer.id, **fields)
        logger.info("User %s updated profile fields %s", viewer.id, sorted(fields))
        return user

    def set_privacy(self, viewer, is_private):
        require_viewer(viewer, "Please log in to update privacy.")
        user = self.repos.users.set_privacy(viewer.id, is_private)
        logger.info("User %s set is_private=%s", viewer.id, is_private)
        return user
