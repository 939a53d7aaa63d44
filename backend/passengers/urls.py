# passengers/urls.py

from django.urls import path

from .views.reservations import (
    TripReservationView,
    RiderReservationsView,
)

app_name = "passengers"

urlpatterns = [
    path("trips/<int:trip_id>/reservation/", TripReservationView.as_view(), name="trip-reservation"),
    path("reservations/", RiderReservationsView.as_view(), name="reservations"),
]
