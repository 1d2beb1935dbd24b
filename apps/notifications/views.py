from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .serializers import NotificationSerializer
from . import dispatcher


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Most recent notifications for the authenticated user, newest first.",
        manual_parameters=[
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
        ],
        responses={200: NotificationSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        limit = request.query_params.get('limit')
        if limit is not None:
            try:
                limit = int(limit)
            except ValueError:
                raise ValidationError({'limit': 'Must be a positive integer.'})
            if limit <= 0:
                raise ValidationError({'limit': 'Must be a positive integer.'})
        notifications = dispatcher.list_notifications(request.user, limit=limit)
        return Response(NotificationSerializer(notifications, many=True).data)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Number of unread notifications.",
        responses={200: openapi.Schema(
            type=openapi.TYPE_OBJECT,
            properties={'unread_count': openapi.Schema(type=openapi.TYPE_INTEGER)}
        )}
    )
    def get(self, request):
        return Response({'unread_count': dispatcher.unread_count(request.user)})


class NotificationMarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark one notification as read. Repeating the call has no further effect.",
        responses={200: NotificationSerializer, 401: 'Unauthorized', 404: 'Notification not found'}
    )
    def post(self, request, notification_id):
        notification = dispatcher.mark_read(notification_id, request.user)
        return Response(NotificationSerializer(notification).data)


class NotificationMarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark every notification of the authenticated user as read.",
        responses={200: openapi.Schema(
            type=openapi.TYPE_OBJECT,
            properties={'marked': openapi.Schema(type=openapi.TYPE_INTEGER)}
        )}
    )
    def post(self, request):
        return Response({'marked': dispatcher.mark_all_read(request.user)})
