from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_CHOICES = [
        ('user', 'Rider'),
        ('driver', 'Driver'),
    ]
    
    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='user')
    phone_number = models.CharField(max_length=15)
    
    class Meta:
        db_table = 'users'

    @property
    def is_driver(self):
        return self.role == 'driver'
        
    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
