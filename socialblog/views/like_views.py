from rest_framework import status
from rest_framework.response import Response

from .base import EngagementAPIView


class BlogLikeAPIView(EngagementAPIView):
    """
    POST /api/blogs/{blog_id}/like/

    Toggles the viewer's like: likes the blog if not liked yet, otherwise
    removes the like and its notification.
    """

    def post(self, request, blog_id):
        result = self.engagement.toggle_like(self.viewer, blog_id)
        return Response(
            {"isLiked": result.liked, "likesCount": result.likes_count},
            status=status.HTTP_200_OK,
        )


class CommentLikeAPIView(EngagementAPIView):
    """
    POST   /api/comments/{comment_id}/like/  like once (409 if already liked)
    DELETE /api/comments/{comment_id}/like/  unlike (409 if not liked)
    """

    def post(self, request, comment_id):
        likes_count = self.engagement.like_comment(self.viewer, comment_id)
        return Response({"likesCount": likes_count}, status=status.HTTP_200_OK)

    def delete(self, request, comment_id):
        likes_count = self.engagement.unlike_comment(self.viewer, comment_id)
        return Response({"likesCount": likes_count}, status=status.HTTP_200_OK)
