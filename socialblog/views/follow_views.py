from rest_framework import status
from rest_framework.response import Response

from socialblog.serializers import (
    FollowResponseSerializer,
    NotificationSerializer,
    PrivacySerializer,
    ProfileUpdateSerializer,
    UserSerializer,
)
from .base import EngagementAPIView


class FollowAPIView(EngagementAPIView):
    """
    POST   /api/users/{user_id}/follow/  follow a public user, or send a
                                         follow request to a private one
    DELETE /api/users/{user_id}/follow/  unfollow, or withdraw a pending request

    Both return the viewer's new followStatus for the user.
    """

    def post(self, request, user_id):
        follow_status = self.follows.follow(self.viewer, user_id)
        return Response({"followStatus": follow_status}, status=status.HTTP_200_OK)

    def delete(self, request, user_id):
        follow_status = self.follows.unfollow(self.viewer, user_id)
        return Response({"followStatus": follow_status}, status=status.HTTP_200_OK)


class FollowRequestResponseAPIView(EngagementAPIView):
    """POST /api/notifications/{notification_id}/respond/ with {"accept": bool}"""

    def post(self, request, notification_id):
        serializer = FollowResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        follow_request = self.follows.respond(self.viewer, notification_id, serializer.validated_data["accept"])
        return Response(NotificationSerializer(follow_request).data, status=status.HTTP_200_OK)


class PrivacyAPIView(EngagementAPIView):
    """PATCH /api/settings/privacy/ with {"isPrivate": bool}"""

    def patch(self, request):
        serializer = PrivacySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.follows.set_privacy(self.viewer, serializer.validated_data["isPrivate"])
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class ProfileSettingsAPIView(EngagementAPIView):
    """
    PATCH /api/settings/profile/ with any of {"fullname", "email", "bio"}

    Blank fields are left unchanged; at least one field must change.
    """

    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.follows.update_profile(self.viewer, **serializer.validated_data)
        data = UserSerializer(user).data
        data["email"] = user.email
        data["bio"] = user.bio
        return Response(data, status=status.HTTP_200_OK)
