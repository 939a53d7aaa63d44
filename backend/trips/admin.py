"""Tells what to show in the Django admin interface for trips app"""

from django.contrib import admin
from .models import Trip, Reservation


# Seat counts and stops are only written through services.trip_ledger
class ReservationInline(admin.TabularInline):
    model = Reservation
    extra = 0
    can_delete = False
    fields = ('rider', 'stops', 'created_at')
    readonly_fields = ('rider', 'stops', 'created_at')


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    """Trip admin"""
    list_display = ['id', 'driver', 'initial_point', 'final_point', 'hour', 'seats', 'price', 'created_at']
    search_fields = ['driver__username', 'initial_point', 'final_point', 'route']
    readonly_fields = ['seats', 'version', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [ReservationInline]


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("trip", "rider", "stops", "created_at")
    search_fields = ("trip__id", "rider__username")
    readonly_fields = ("trip", "rider", "stops", "created_at", "updated_at")
