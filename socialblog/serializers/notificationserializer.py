from rest_framework import serializers
from socialblog.models import Notification
from .userserializer import UserSerializer


class NotificationSerializer(serializers.ModelSerializer):
    sender = UserSerializer(read_only=True)
    blog = serializers.IntegerField(source="blog_id", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Notification
        fields = ["id", "type", "status", "message", "content", "sender", "blog", "createdAt"]


class FollowResponseSerializer(serializers.Serializer):
    accept = serializers.BooleanField()


class MarkReadSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), required=False)
