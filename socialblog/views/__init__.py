from .feed_views import FeedAPIView, BlogCreateAPIView, BlogDetailAPIView, SearchAPIView, ProfileAPIView
from .like_views import BlogLikeAPIView, CommentLikeAPIView
from .comment_views import BlogCommentsAPIView, CommentReplyAPIView, CommentDetailAPIView
from .follow_views import FollowAPIView, FollowRequestResponseAPIView, PrivacyAPIView, ProfileSettingsAPIView
from .notification_views import NotificationListAPIView, NotificationReadAPIView
