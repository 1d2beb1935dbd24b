from django.contrib import admin
from .models import User, Employer, Worker


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_employer', 'is_worker', 'is_superuser')
    list_filter = ('is_superuser',)
    search_fields = ('username', 'email', 'phone_number')


@admin.register(Employer)
class EmployerAdmin(admin.ModelAdmin):
    list_display = ('user', 'location')
    search_fields = ('user__username', 'user__email')


@admin.register(Worker)
class WorkerAdmin(admin.ModelAdmin):
    list_display = ('user', 'location', 'skills')
    search_fields = ('user__username', 'user__email')
