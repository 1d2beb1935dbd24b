from django.contrib import admin
from .models import Job, JobApplication, JobState, JobStateTransition

@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('title', 'employer', 'state', 'version', 'assigned_worker', 'created_at')
    list_filter = ('state',)
    search_fields = ('title', 'employer__username')
    readonly_fields = ('state', 'version', 'assigned_worker')

@admin.register(JobApplication)
class JobApplicationAdmin(admin.ModelAdmin):
    list_display = ('job', 'worker', 'status', 'applied_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'worker__user__username')

@admin.register(JobState)
class JobStateAdmin(admin.ModelAdmin):
    list_display = ('job', 'state', 'worker_assigned_at', 'work_completed_at', 'employer_approved_at', 'cancelled_at')
    list_filter = ('state',)

@admin.register(JobStateTransition)
class JobStateTransitionAdmin(admin.ModelAdmin):
    list_display = ('job', 'from_state', 'to_state', 'version', 'changed_by', 'created_at')
    list_filter = ('to_state',)
    search_fields = ('job__title',)
