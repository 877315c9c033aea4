from rest_framework import serializers
from socialblog.models import User


class UserSerializer(serializers.ModelSerializer):
    profileImageURL = serializers.URLField(source="profile_image_url", read_only=True)
    isPrivate = serializers.BooleanField(source="is_private", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "fullname", "profileImageURL", "isPrivate"]


class UserStatusSerializer(serializers.BaseSerializer):
    """A user flattened together with the viewer's follow-state label for them."""

    def to_representation(self, instance):
        data = UserSerializer(instance.user, context=self.context).data
        data["followStatus"] = instance.follow_status
        return data


class PrivacySerializer(serializers.Serializer):
    isPrivate = serializers.BooleanField()


class ProfileUpdateSerializer(serializers.Serializer):
    fullname = serializers.CharField(min_length=2, max_length=60, required=False)
    email = serializers.EmailField(required=False)
    bio = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        if not any(data.get(name) for name in ("fullname", "email", "bio")):
            raise serializers.ValidationError("No changes provided.")
        return data
