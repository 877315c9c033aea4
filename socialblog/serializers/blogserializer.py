from rest_framework import serializers
from .userserializer import UserSerializer, UserStatusSerializer
from .commentserializer import CommentNodeSerializer


class BlogCardSerializer(serializers.Serializer):
    """
    Serializer for the blog cards built by EngagementService.

    Output shape:
        - id, title, body, coverImageURL, createdAt
        - author: the owning user
        - isOwn / isFollowing / followStatus: the viewer's relation to the owner
        - likes: likers, each with the viewer's followStatus for that liker
        - comments: top-level comments newest first, each with ``replies``
        - totalComments: top-level comments plus replies
    """
    id = serializers.IntegerField(source="blog.pk")
    title = serializers.CharField(source="blog.title")
    body = serializers.CharField(source="blog.body")
    coverImageURL = serializers.CharField(source="blog.cover_image_url")
    createdAt = serializers.DateTimeField(source="blog.created_at")
    author = UserSerializer(source="blog.author")
    isOwn = serializers.BooleanField(source="is_own")
    isFollowing = serializers.BooleanField(source="is_following")
    followStatus = serializers.CharField(source="follow_status")
    likes = UserStatusSerializer(source="likers", many=True)
    likesCount = serializers.IntegerField(source="likes_count")
    comments = CommentNodeSerializer(source="thread.nodes", many=True)
    totalComments = serializers.IntegerField(source="total_comments")


class BlogCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    body = serializers.CharField()
    coverImageURL = serializers.URLField(required=False, allow_blank=True, default="")
