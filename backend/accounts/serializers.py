from rest_framework import serializers
from django.contrib.auth import authenticate
from django.utils.translation import gettext_lazy as _

from drivers.models import Vehicle
from drivers.serializers import VehicleSerializer
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Account as returned after register/login and on the profile endpoint"""
    vehicle = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "phone_number",
            "is_driver",
            "vehicle",
        ]
        read_only_fields = ["id", "username", "email", "role", "phone_number", "is_driver"]

    def get_vehicle(self, obj):
        # Riders, and drivers registered before vehicles were required, have none
        try:
            vehicle = obj.vehicle
        except Vehicle.DoesNotExist:
            return None
        return VehicleSerializer(vehicle, context=self.context).data


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError(_("Invalid username or password"))
        return user


class RegisterSerializer(serializers.ModelSerializer):
    """
    Sign-up for riders and drivers. Drivers register their car in the
    same request: the plate is shown to riders on every trip they publish.
    """
    password = serializers.CharField(write_only=True)
    car_plate = serializers.CharField(required=False, max_length=20)
    brand = serializers.CharField(required=False, allow_blank=True, max_length=50)
    model = serializers.CharField(required=False, allow_blank=True, max_length=50)
    color = serializers.CharField(required=False, allow_blank=True, max_length=30)
    vehicle_picture = serializers.ImageField(required=False)

    VEHICLE_FIELDS = ('car_plate', 'brand', 'model', 'color')

    class Meta:
        model = User
        fields = [
            'username', 'password', 'email', 'role', 'phone_number',
            'car_plate', 'brand', 'model', 'color', 'vehicle_picture',
        ]

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError(_("Email already exists"))
        return value

    def validate_car_plate(self, value):
        if Vehicle.objects.filter(car_plate=value).exists():
            raise serializers.ValidationError(_("A vehicle with this plate is already registered"))
        return value

    def validate(self, data):
        if data.get('role') == 'driver' and not data.get('car_plate'):
            raise serializers.ValidationError({
                'car_plate': _('Car plate is required for drivers')
            })
        return data

    def create(self, validated_data):
        vehicle_data = {
            field: validated_data.pop(field)
            for field in self.VEHICLE_FIELDS if field in validated_data
        }
        picture = validated_data.pop('vehicle_picture', None)

        user = User.objects.create_user(**validated_data)

        # Riders may send car fields too; only drivers get a vehicle
        if user.is_driver:
            Vehicle.objects.create(driver=user, picture=picture, **vehicle_data)

        return user
