from rest_framework import serializers

from trips.models import Reservation


class RiderReservationSerializer(serializers.ModelSerializer):
    """
    One of the rider's reservations together with the trip it is on.
    Used for `/passenger/reservations/`.
    """
    trip_id = serializers.IntegerField(read_only=True)
    initial_point = serializers.CharField(source='trip.initial_point', read_only=True)
    final_point = serializers.CharField(source='trip.final_point', read_only=True)
    route = serializers.CharField(source='trip.route', read_only=True)
    hour = serializers.CharField(source='trip.hour', read_only=True)
    price = serializers.DecimalField(source='trip.price', max_digits=10, decimal_places=2, read_only=True)
    seats_reserved = serializers.IntegerField(source='seats', read_only=True)

    class Meta:
        model = Reservation
        fields = [
            'trip_id', 'initial_point', 'final_point', 'route', 'hour',
            'price', 'seats_reserved', 'stops',
        ]
