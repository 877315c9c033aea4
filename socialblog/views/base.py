from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework.views import APIView

from socialblog.principal import Principal
from socialblog.services import EngagementService, FollowService


def int_param(request, name, default):
    try:
        return int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        return default


class EngagementAPIView(APIView):
    """
    Base for the API views. Anonymous requests are let through; the services
    decide what an anonymous viewer may do and raise Unauthenticated when a
    mutation needs a login.
    """
    authentication_classes = [SessionAuthentication, BasicAuthentication]
    permission_classes = []

    engagement_class = EngagementService
    follow_class = FollowService

    @property
    def viewer(self):
        return Principal.from_user(self.request.user)

    @property
    def engagement(self):
        return self.engagement_class()

    @property
    def follows(self):
        return self.follow_class()
