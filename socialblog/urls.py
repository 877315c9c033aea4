from django.urls import path
from socialblog import views

urlpatterns = [
    # Feed and blogs
    path("api/feed/", views.FeedAPIView.as_view(), name="api_feed"),
    path("api/search/", views.SearchAPIView.as_view(), name="api_search"),
    path("api/blogs/", views.BlogCreateAPIView.as_view(), name="api_blog_create"),
    path("api/blogs/<int:blog_id>/", views.BlogDetailAPIView.as_view(), name="api_blog_detail"),
    path("api/blogs/<int:blog_id>/like/", views.BlogLikeAPIView.as_view(), name="api_blog_like"),

    # Comments
    path("api/blogs/<int:blog_id>/comments/", views.BlogCommentsAPIView.as_view(), name="api_blog_comments"),
    path("api/comments/<int:comment_id>/", views.CommentDetailAPIView.as_view(), name="api_comment_detail"),
    path("api/comments/<int:comment_id>/replies/", views.CommentReplyAPIView.as_view(), name="api_comment_replies"),
    path("api/comments/<int:comment_id>/like/", views.CommentLikeAPIView.as_view(), name="api_comment_like"),

    # Users and follows
    path("api/users/<int:user_id>/", views.ProfileAPIView.as_view(), name="api_profile"),
    path("api/users/<int:user_id>/follow/", views.FollowAPIView.as_view(), name="api_follow"),
    path("api/settings/privacy/", views.PrivacyAPIView.as_view(), name="api_privacy"),
    path("api/settings/profile/", views.ProfileSettingsAPIView.as_view(), name="api_profile_settings"),

    # Notifications
    path("api/notifications/", views.NotificationListAPIView.as_view(), name="api_notifications"),
    path("api/notifications/read/", views.NotificationReadAPIView.as_view(), name="api_notifications_read"),
    path(
        "api/notifications/<int:notification_id>/respond/",
        views.FollowRequestResponseAPIView.as_view(),
        name="api_follow_request_respond",
    ),
]
