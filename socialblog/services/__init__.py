from .visibility import can_view, ensure_can_view, visible_blogs
from .follow_state import FOLLOW, FOLLOWING, OWN, REQUESTED, resolve_status, resolve_statuses
from .notifications import NotificationLedger
from .comment_threads import CommentNode, CommentThread, CommentThreadAssembler
from .engagement import BlogCard, EngagementService
from .follows import FollowService

__all__ = [
    "can_view",
    "ensure_can_view",
    "visible_blogs",
    "FOLLOW",
    "FOLLOWING",
    "OWN",
    "REQUESTED",
    "resolve_status",
    "resolve_statuses",
    "NotificationLedger",
    "CommentNode",
    "CommentThread",
    "CommentThreadAssembler",
    "BlogCard",
    "EngagementService",
    "FollowService",
]
