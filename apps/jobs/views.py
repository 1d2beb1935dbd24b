from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .serializers import (
    JobApplicationSerializer, ApplySerializer, JobSerializer, JobStateSerializer,
    JobStateTransitionSerializer, TransitionRequestSerializer, CancelSerializer,
    TransitionResultSerializer,
)
from . import lifecycle, services
from core.utils import IsEmployer, IsWorker, IsJobParty
import logging

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    401: 'Unauthorized',
    403: 'Forbidden or invalid role',
    404: 'Not found',
    409: 'Invalid transition or duplicate application',
    503: 'Store unavailable',
}


class JobApplyView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Apply to a job that is still collecting applications.",
        request_body=ApplySerializer,
        responses={201: JobApplicationSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, job_id):
        serializer = ApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = services.apply_to_job(job_id, request.user, serializer.validated_data['message'])
        return Response(JobApplicationSerializer(application).data, status=status.HTTP_201_CREATED)


class JobApplicationsListView(APIView):
    permission_classes = [IsAuthenticated, IsEmployer]

    @swagger_auto_schema(
        operation_description="List applications received for one of your jobs.",
        responses={200: JobApplicationSerializer(many=True), **ERROR_RESPONSES}
    )
    def get(self, request, job_id):
        applications = services.list_job_applications(job_id, request.user)
        return Response(JobApplicationSerializer(applications, many=True).data)


class WorkerApplicationsView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="List the authenticated worker's applications.",
        responses={200: JobApplicationSerializer(many=True), 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def get(self, request):
        applications = services.list_worker_applications(request.user)
        return Response(JobApplicationSerializer(applications, many=True).data)


class ApplicationAcceptView(APIView):
    permission_classes = [IsAuthenticated, IsEmployer]

    @swagger_auto_schema(
        operation_description="Accept a pending application. Assigns the worker, opens the chat "
                              "and moves the job to accepted.",
        responses={
            200: openapi.Response(
                description="Application accepted",
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'application': openapi.Schema(type=openapi.TYPE_OBJECT),
                        'chat_id': openapi.Schema(type=openapi.TYPE_INTEGER),
                        'job_state': openapi.Schema(type=openapi.TYPE_OBJECT),
                    }
                )
            ),
            **ERROR_RESPONSES
        }
    )
    def post(self, request, application_id):
        result = services.accept_application(application_id, request.user)
        return Response({
            'application': JobApplicationSerializer(result.application).data,
            'chat_id': result.chat.id,
            'job_state': JobStateSerializer(result.job_state).data,
        }, status=status.HTTP_200_OK)


class ApplicationRejectView(APIView):
    permission_classes = [IsAuthenticated, IsEmployer]

    @swagger_auto_schema(
        operation_description="Reject a pending application.",
        responses={200: JobApplicationSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, application_id):
        application = services.reject_application(application_id, request.user)
        return Response(JobApplicationSerializer(application).data)


class JobTransitionView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Move the job to its next state. The employer accepts and confirms; "
                              "the worker reports en route, in progress and completed.",
        request_body=TransitionRequestSerializer,
        responses={200: TransitionResultSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, job_id, application_id):
        serializer = TransitionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = lifecycle.request_transition(job_id, application_id, request.user, serializer.validated_data['state'])
        return Response(TransitionResultSerializer(result).data)


class JobCancelView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Cancel a job from any non-terminal state.",
        request_body=CancelSerializer,
        responses={200: TransitionResultSerializer, **ERROR_RESPONSES}
    )
    def post(self, request, job_id):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = lifecycle.cancel_job(job_id, request.user, serializer.validated_data['reason'])
        return Response(TransitionResultSerializer(result).data)


class JobStateView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Current state, version and milestone timestamps of a job.",
        responses={200: JobStateSerializer, **ERROR_RESPONSES}
    )
    def get(self, request, job_id):
        job, job_state = lifecycle.get_job_state(job_id, request.user)
        data = JobStateSerializer(job_state).data
        data['job'] = JobSerializer(job).data
        return Response(data)


class JobStateHistoryView(APIView):
    permission_classes = [IsAuthenticated, IsJobParty]

    @swagger_auto_schema(
        operation_description="Ordered history of state transitions for a job.",
        responses={200: JobStateTransitionSerializer(many=True), **ERROR_RESPONSES}
    )
    def get(self, request, job_id):
        transitions = lifecycle.list_state_history(job_id, request.user)
        return Response(JobStateTransitionSerializer(transitions, many=True).data)
