from django.db import models
from django.contrib.auth.models import AbstractUser
from core.constants import ROLE_WORKER, ROLE_EMPLOYER


class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)

    @property
    def is_employer(self):
        return hasattr(self, 'employer')

    @property
    def is_worker(self):
        return hasattr(self, 'worker')

    @property
    def role(self):
        if self.is_worker:
            return ROLE_WORKER
        if self.is_employer:
            return ROLE_EMPLOYER
        return None


class Employer(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='employer')
    location = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Employer: {self.user.username}"


class Worker(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='worker')
    location = models.CharField(max_length=100, blank=True, null=True)
    skills = models.CharField(max_length=500, blank=True, default='')

    def __str__(self):
        return f"Worker: {self.user.username}"
