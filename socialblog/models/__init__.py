from .user import User
from .blog import Blog
from .comment import Comment
from .notification import Notification

__all__ = ["User", "Blog", "Comment", "Notification"]
