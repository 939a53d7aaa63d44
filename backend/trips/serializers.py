from decimal import Decimal

from rest_framework import serializers

from drivers.models import Vehicle
from .models import Trip, Reservation

MIN_PRICE = Decimal('0.01')


class TripCreateSerializer(serializers.ModelSerializer):
    """Serializer for publishing a trip; every field is mandatory"""
    seats = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=MIN_PRICE)

    class Meta:
        model = Trip
        fields = ['initial_point', 'final_point', 'route', 'hour', 'seats', 'price']


class TripUpdateSerializer(serializers.Serializer):
    """
    Sparse patch for a trip.

    Only keys present in the payload end up in validated_data, so an
    explicit ``0`` or ``""`` is applied instead of being read as "unset".
    """
    initial_point = serializers.CharField(max_length=255, required=False, allow_blank=True)
    final_point = serializers.CharField(max_length=255, required=False, allow_blank=True)
    route = serializers.CharField(required=False, allow_blank=True)
    hour = serializers.CharField(max_length=50, required=False, allow_blank=True)
    seats = serializers.IntegerField(min_value=0, required=False)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=MIN_PRICE, required=False)


class ReservationRequestSerializer(serializers.Serializer):
    """Body of a reserve or amend request: one stop per requested seat"""
    seats_reserved = serializers.IntegerField(min_value=1)
    stops = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        allow_empty=False,
    )


class ReservationSerializer(serializers.ModelSerializer):
    rider_id = serializers.IntegerField(read_only=True)
    seats_reserved = serializers.IntegerField(source='seats', read_only=True)

    class Meta:
        model = Reservation
        fields = ['rider_id', 'stops', 'seats_reserved']


class TripSummarySerializer(serializers.ModelSerializer):
    """Trip as shown in the public listing"""
    trip_id = serializers.IntegerField(source='id', read_only=True)
    seats_available = serializers.IntegerField(source='seats', read_only=True)

    class Meta:
        model = Trip
        fields = ['trip_id', 'initial_point', 'final_point', 'route', 'hour',
                  'seats_available', 'price']


class TripDetailSerializer(TripSummarySerializer):
    """Listing fields plus the driver's vehicle"""
    driver_id = serializers.IntegerField(read_only=True)
    car_plate = serializers.SerializerMethodField()
    car_picture = serializers.SerializerMethodField()

    class Meta(TripSummarySerializer.Meta):
        fields = TripSummarySerializer.Meta.fields + ['driver_id', 'car_plate', 'car_picture']

    def _vehicle(self, obj):
        try:
            return obj.driver.vehicle
        except (AttributeError, Vehicle.DoesNotExist):
            return None

    def get_car_plate(self, obj):
        vehicle = self._vehicle(obj)
        return vehicle.car_plate if vehicle else None

    def get_car_picture(self, obj):
        vehicle = self._vehicle(obj)
        if vehicle and vehicle.picture:
            request = self.context.get('request')
            if request:
                return request.build_absolute_uri(vehicle.picture.url)
            return vehicle.picture.url
        return None


class TripSerializer(serializers.ModelSerializer):
    """Full trip state, returned to the owning driver after an edit"""
    trip_id = serializers.IntegerField(source='id', read_only=True)
    driver_id = serializers.IntegerField(read_only=True)
    passengers = ReservationSerializer(many=True, read_only=True)

    class Meta:
        model = Trip
        fields = ['trip_id', 'initial_point', 'final_point', 'route', 'hour',
                  'seats', 'price', 'passengers', 'driver_id']
