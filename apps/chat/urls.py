from django.urls import path
from .views import ChatListView, ChatMessagesView, ChatMarkReadView, ShareEtaView, ShareLocationView

urlpatterns = [
    path('', ChatListView.as_view(), name='chat_list'),
    path('<int:chat_id>/messages/', ChatMessagesView.as_view(), name='chat_messages'),
    path('<int:chat_id>/read/', ChatMarkReadView.as_view(), name='chat_mark_read'),
    path('<int:chat_id>/eta/', ShareEtaView.as_view(), name='chat_share_eta'),
    path('<int:chat_id>/location/', ShareLocationView.as_view(), name='chat_share_location'),
]
