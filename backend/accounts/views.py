from django.db import transaction
from django.utils.translation import gettext
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import LoginSerializer, RegisterSerializer, UserSerializer


def _session_payload(request, user, message):
    """Account (with the driver's vehicle) plus a fresh token pair."""
    refresh = RefreshToken.for_user(user)
    return {
        "message": message,
        "user": UserSerializer(user, context={"request": request}).data,
        "tokens": {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
        },
    }


class RegisterView(APIView):
    """
    Register a rider or a driver.

    Drivers send their car in the same request (multipart when a
    vehicle_picture is attached):
    {
        "username": "ana",
        "password": "...",
        "role": "driver",
        "phone_number": "3001234567",
        "car_plate": "ABC-123",
        "brand": "Renault", "model": "Logan", "color": "Gris"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # User and vehicle are created together or not at all
        with transaction.atomic():
            user = serializer.save()

        return Response(
            _session_payload(request, user, gettext("User registered successfully.")),
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """Exchange username and password for a token pair."""
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # LoginSerializer.validate returns the authenticated user
        return Response(_session_payload(request, serializer.validated_data, gettext("Login successful.")))


class ProfileView(APIView):
    """GET: The caller's account, including the vehicle for drivers."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user, context={"request": request}).data)
