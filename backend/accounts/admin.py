from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count

from accounts.models import User
from drivers.models import Vehicle


class VehicleInline(admin.StackedInline):
    model = Vehicle
    can_delete = False
    extra = 0
    fields = ("car_plate", "brand", "model", "color", "picture")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Riders and drivers; a driver's car is edited inline"""

    list_display = ["username", "role", "phone_number", "car_plate", "published_trips", "is_active"]
    list_filter = ["role", "is_active", "is_staff"]
    search_fields = ["username", "email", "phone_number", "vehicle__car_plate"]
    ordering = ("username",)
    inlines = [VehicleInline]

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Carpool", {"fields": ("role", "phone_number")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Carpool", {"fields": ("role", "phone_number")}),
    )

    def get_queryset(self, request):
        return (
            super().get_queryset(request)
            .select_related("vehicle")
            .annotate(trip_count=Count("trips"))
        )

    @admin.display(description="Car plate", ordering="vehicle__car_plate")
    def car_plate(self, obj):
        try:
            return obj.vehicle.car_plate
        except Vehicle.DoesNotExist:
            return "-"

    @admin.display(description="Trips", ordering="trip_count")
    def published_trips(self, obj):
        return obj.trip_count
