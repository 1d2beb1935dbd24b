from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .serializers import (
    ChatSerializer, MessageSerializer, SendMessageSerializer, MarkReadSerializer,
    ShareEtaSerializer, ShareLocationSerializer,
)
from . import services, transcript
from core.utils import IsJobParty
import logging

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    401: 'Unauthorized',
    403: 'Not a party to this chat',
    404: 'Chat not found',
    503: 'Store unavailable',
}


class ChatListView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="List chats the authenticated user takes part in.",
        responses={200: ChatSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        chats = transcript.chats_for_user(request.user)
        return Response(ChatSerializer(chats, many=True, context={'request': request}).data)


class ChatMessagesView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Transcript entries in sequence order. Pass `since` to fetch only "
                              "entries after a known sequence number.",
        manual_parameters=[
            openapi.Parameter('since', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, required=False),
        ],
        responses={200: MessageSerializer(many=True), **ERROR_RESPONSES}
    )
    def get(self, request, chat_id):
        since = request.query_params.get('since')
        if since is not None:
            try:
                since = int(since)
            except ValueError:
                raise ValidationError({'since': 'Must be an integer sequence number.'})
        entries = transcript.list_entries(chat_id, since_sequence=since, reader=request.user)
        return Response(MessageSerializer(entries, many=True).data)

    @swagger_auto_schema(
        operation_description="Send a message to the other party of the job.",
        request_body=SendMessageSerializer,
        responses={201: MessageSerializer, 400: 'Bad Request', **ERROR_RESPONSES}
    )
    def post(self, request, chat_id):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = services.send_message(chat_id, request.user, serializer.validated_data['body'])
        return Response(MessageSerializer(entry).data, status=status.HTTP_201_CREATED)


class ChatMarkReadView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Mark the other party's messages up to a sequence number as read.",
        request_body=MarkReadSerializer,
        responses={
            200: openapi.Response(
                description="Read cursor after the call",
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'last_read_sequence': openapi.Schema(type=openapi.TYPE_INTEGER),
                        'unread_count': openapi.Schema(type=openapi.TYPE_INTEGER),
                    }
                )
            ),
            **ERROR_RESPONSES
        }
    )
    def post(self, request, chat_id):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chat = transcript.get_chat(chat_id)
        cursor = transcript.mark_read(chat, request.user, serializer.validated_data['upto_sequence'])
        return Response({
            'last_read_sequence': cursor,
            'unread_count': transcript.unread_count(chat, request.user),
        })


class ShareEtaView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Share an estimated arrival time while the job is under way.",
        request_body=ShareEtaSerializer,
        responses={201: MessageSerializer, 409: 'Job is not under way', **ERROR_RESPONSES}
    )
    def post(self, request, chat_id):
        serializer = ShareEtaSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = services.share_eta(chat_id, request.user, serializer.validated_data['minutes'])
        return Response(MessageSerializer(entry).data, status=status.HTTP_201_CREATED)


class ShareLocationView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Share a location while the job is under way.",
        request_body=ShareLocationSerializer,
        responses={201: MessageSerializer, 409: 'Job is not under way', **ERROR_RESPONSES}
    )
    def post(self, request, chat_id):
        serializer = ShareLocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = services.share_location(
            chat_id, request.user,
            serializer.validated_data['latitude'], serializer.validated_data['longitude'],
        )
        return Response(MessageSerializer(entry).data, status=status.HTTP_201_CREATED)
