from rest_framework import status
from rest_framework.response import Response

from socialblog.serializers import CommentInputSerializer, CommentNodeSerializer, CommentSerializer
from .base import EngagementAPIView


class BlogCommentsAPIView(EngagementAPIView):
    """
    GET  /api/blogs/{blog_id}/comments/  the two-level comment thread
    POST /api/blogs/{blog_id}/comments/  add a top-level comment
    """

    def get(self, request, blog_id):
        thread = self.engagement.comment_thread(self.viewer, blog_id)
        return Response({
            "type": "comments",
            "count": thread.total_comments,
            "src": CommentNodeSerializer(thread.nodes, many=True).data,
        }, status=status.HTTP_200_OK)

    def post(self, request, blog_id):
        serializer = CommentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = self.engagement.post_comment(self.viewer, blog_id, serializer.validated_data["content"])
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentReplyAPIView(EngagementAPIView):
    """POST /api/comments/{comment_id}/replies/"""

    def post(self, request, comment_id):
        serializer = CommentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reply = self.engagement.post_reply(self.viewer, comment_id, serializer.validated_data["content"])
        return Response(CommentSerializer(reply).data, status=status.HTTP_201_CREATED)


class CommentDetailAPIView(EngagementAPIView):
    """DELETE /api/comments/{comment_id}/ (comment author only)"""

    def delete(self, request, comment_id):
        self.engagement.delete_comment(self.viewer, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
