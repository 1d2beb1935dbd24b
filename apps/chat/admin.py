from django.contrib import admin
from .models import Chat, Message, ChatReadCursor


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ('job', 'worker', 'employer', 'last_sequence', 'created_at')
    search_fields = ('job__title', 'employer__username', 'worker__user__username')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('chat', 'sequence', 'kind', 'author', 'is_read', 'created_at')
    list_filter = ('kind', 'is_read')
    search_fields = ('body',)


@admin.register(ChatReadCursor)
class ChatReadCursorAdmin(admin.ModelAdmin):
    list_display = ('chat', 'user', 'last_read_sequence', 'updated_at')
