from django.db import models
from django.conf import settings

User = settings.AUTH_USER_MODEL

class Vehicle(models.Model):
    """The car a driver publishes trips with"""
    
    driver = models.OneToOneField(User, on_delete=models.CASCADE, related_name='vehicle')
    
    car_plate = models.CharField(max_length=20, unique=True)
    brand = models.CharField(max_length=50, blank=True)
    model = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=30, blank=True)
    picture = models.ImageField(upload_to='vehicle_pictures/', null=True, blank=True)
    
    class Meta:
        db_table = 'vehicles'
        
    def __str__(self):
        return f"{self.driver} - {self.car_plate}"
