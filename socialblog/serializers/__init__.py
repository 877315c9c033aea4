from .userserializer import UserSerializer, UserStatusSerializer, PrivacySerializer, ProfileUpdateSerializer
from .commentserializer import CommentSerializer, CommentNodeSerializer, CommentInputSerializer
from .blogserializer import BlogCardSerializer, BlogCreateSerializer
from .notificationserializer import NotificationSerializer, FollowResponseSerializer, MarkReadSerializer
from .profileserializer import ProfileSerializer
