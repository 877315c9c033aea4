from rest_framework import status
from rest_framework.response import Response

from socialblog.serializers import MarkReadSerializer, NotificationSerializer
from .base import EngagementAPIView


class NotificationListAPIView(EngagementAPIView):
    """
    GET /api/notifications/             all of the viewer's notifications
    GET /api/notifications/?unread=true only unread informational ones
    """

    def get(self, request):
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true", "yes")
        service = self.engagement
        items = service.notifications(self.viewer, unread_only=unread_only)
        return Response({
            "type": "notifications",
            "unread": service.unread_count(self.viewer),
            "items": NotificationSerializer(items, many=True).data,
        }, status=status.HTTP_200_OK)


class NotificationReadAPIView(EngagementAPIView):
    """POST /api/notifications/read/ with optional {"ids": [...]}; no ids marks all."""

    def post(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = self.engagement.mark_notifications_read(self.viewer, serializer.validated_data.get("ids"))
        return Response({"updated": updated}, status=status.HTTP_200_OK)
