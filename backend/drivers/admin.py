from django.contrib import admin
from drivers.models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    """Admin panel for managing driver vehicles"""

    list_display = [
        "driver",
        "car_plate",
        "brand",
        "model",
        "color",
    ]

    search_fields = [
        "driver__username",
        "car_plate",
    ]

    ordering = ("driver__username",)
