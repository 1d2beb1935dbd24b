from django.urls import path
from .views import (
    JobApplyView, JobApplicationsListView, WorkerApplicationsView,
    ApplicationAcceptView, ApplicationRejectView, JobTransitionView,
    JobCancelView, JobStateView, JobStateHistoryView,
)

urlpatterns = [
    path('<int:job_id>/apply/', JobApplyView.as_view(), name='job_apply'),
    path('<int:job_id>/applications/', JobApplicationsListView.as_view(), name='job_applications'),
    path('my-applications/', WorkerApplicationsView.as_view(), name='worker_applications'),
    path('applications/<int:application_id>/accept/', ApplicationAcceptView.as_view(), name='application_accept'),
    path('applications/<int:application_id>/reject/', ApplicationRejectView.as_view(), name='application_reject'),
    path(
        '<int:job_id>/applications/<int:application_id>/transition/',
        JobTransitionView.as_view(), name='job_transition'
    ),
    path('<int:job_id>/cancel/', JobCancelView.as_view(), name='job_cancel'),
    path('<int:job_id>/state/', JobStateView.as_view(), name='job_state'),
    path('<int:job_id>/states/', JobStateHistoryView.as_view(), name='job_state_history'),
]
