from rest_framework import status
from rest_framework.response import Response

from socialblog.serializers import (
    BlogCardSerializer,
    BlogCreateSerializer,
    ProfileSerializer,
    UserStatusSerializer,
)
from .base import EngagementAPIView, int_param


class FeedAPIView(EngagementAPIView):
    """
    GET /api/feed/?page=&size=
    Every blog the viewer may see, newest first, as blog cards.
    """

    def get(self, request):
        page = self.engagement.feed(
            self.viewer,
            page=int_param(request, "page", 1),
            size=int_param(request, "size", None),
        )
        return Response({
            "type": "feed",
            "page_number": page.page,
            "size": page.size,
            "count": page.count,
            "src": BlogCardSerializer(page.cards, many=True).data,
        }, status=status.HTTP_200_OK)


class BlogCreateAPIView(EngagementAPIView):
    """POST /api/blogs/ publishes a blog for the logged-in user."""

    def post(self, request):
        serializer = BlogCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = self.engagement
        blog = service.create_blog(
            self.viewer,
            serializer.validated_data["title"],
            serializer.validated_data["body"],
            serializer.validated_data["coverImageURL"],
        )
        card = service.blog_detail(self.viewer, blog.pk)
        return Response(BlogCardSerializer(card).data, status=status.HTTP_201_CREATED)


class BlogDetailAPIView(EngagementAPIView):
    """
    GET    /api/blogs/{blog_id}/  one blog card (403 when private to the viewer)
    DELETE /api/blogs/{blog_id}/  owner only; removes comments and notifications
    """

    def get(self, request, blog_id):
        card = self.engagement.blog_detail(self.viewer, blog_id)
        return Response(BlogCardSerializer(card).data, status=status.HTTP_200_OK)

    def delete(self, request, blog_id):
        self.engagement.delete_blog(self.viewer, blog_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SearchAPIView(EngagementAPIView):
    """GET /api/search/?q= matching users (with follow state) and visible blogs."""

    def get(self, request):
        results = self.engagement.search(self.viewer, request.query_params.get("q", ""))
        return Response({
            "type": "search",
            "query": results.query,
            "users": UserStatusSerializer(results.users, many=True).data,
            "blogs": BlogCardSerializer(results.blogs, many=True).data,
        }, status=status.HTTP_200_OK)


class ProfileAPIView(EngagementAPIView):
    """GET /api/users/{user_id}/ profile, follow state and (if visible) blogs."""

    def get(self, request, user_id):
        profile = self.engagement.profile(self.viewer, user_id)
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)
