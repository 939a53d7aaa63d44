from django.urls import path
from .views import DriverTripsView

app_name = "drivers"

urlpatterns = [
    path("trips/", DriverTripsView.as_view(), name="driver-trips"),
]
