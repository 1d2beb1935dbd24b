from django.urls import path
from .views import JobEventsView, UserEventsView

urlpatterns = [
    path('jobs/<int:job_id>/events/', JobEventsView.as_view(), name='job_events'),
    path('me/events/', UserEventsView.as_view(), name='user_events'),
]
