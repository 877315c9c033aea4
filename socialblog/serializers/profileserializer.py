from rest_framework import serializers
from .userserializer import UserSerializer
from .blogserializer import BlogCardSerializer


class ProfileSerializer(serializers.Serializer):
    user = UserSerializer()
    bio = serializers.CharField(source="user.bio")
    followStatus = serializers.CharField(source="follow_status")
    followersCount = serializers.IntegerField(source="followers_count")
    followingCount = serializers.IntegerField(source="following_count")
    canView = serializers.BooleanField(source="can_view")
    blogs = BlogCardSerializer(many=True)
    commonFollowers = UserSerializer(source="common_followers", many=True)
