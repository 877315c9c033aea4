from rest_framework import serializers
from socialblog.models import Comment
from .userserializer import UserSerializer


class CommentSerializer(serializers.ModelSerializer):
    author = UserSerializer(read_only=True)
    blog = serializers.IntegerField(source="blog_id", read_only=True)
    parent = serializers.IntegerField(source="parent_id", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    likes = UserSerializer(many=True, read_only=True)
    likesCount = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = ["id", "blog", "parent", "content", "author", "createdAt", "likes", "likesCount"]

    def get_likesCount(self, obj):
        return len(obj.likes.all())


class CommentNodeSerializer(serializers.BaseSerializer):
    """A top-level comment with its replies nested under ``replies``."""

    def to_representation(self, instance):
        data = CommentSerializer(instance.comment, context=self.context).data
        data["replies"] = CommentSerializer(instance.replies, many=True, context=self.context).data
        return data


class CommentInputSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000, trim_whitespace=True)
