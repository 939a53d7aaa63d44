from rest_framework import serializers

from trips.models import Trip
from .models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    """The driver's car as shown on their account"""

    class Meta:
        model = Vehicle
        fields = ["car_plate", "brand", "model", "color", "picture"]
        read_only_fields = ["car_plate"]


class DriverTripSerializer(serializers.ModelSerializer):
    """
    A trip as listed to the driver who published it.
    `reservations` is the number of seats riders currently hold.
    """
    trip_id = serializers.IntegerField(source="id", read_only=True)
    reservations = serializers.IntegerField(source="reserved_seats", read_only=True)

    class Meta:
        model = Trip
        fields = [
            "trip_id",
            "initial_point",
            "final_point",
            "route",
            "hour",
            "seats",
            "price",
            "reservations",
        ]
