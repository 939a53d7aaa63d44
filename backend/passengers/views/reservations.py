# passengers/views/reservations.py

from django.utils.translation import gettext
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services import trip_ledger
from services.trip_ledger import TripLedgerError
from trips.responses import ledger_error_response
from trips.serializers import ReservationSerializer
from ..serializers import RiderReservationSerializer


class TripReservationView(APIView):
    """
    POST: Rider reserves seats on a trip, one stop per seat.
    PUT: Rider changes the stops (and so the seats) of their reservation.
    DELETE: Rider cancels their reservation.

    Body for POST/PUT:
    {
        "seats_reserved": 2,
        "stops": ["Main St", "5th Ave"]
    }
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, trip_id: int):
        try:
            result = trip_ledger.reserve_seats(trip_id, request.user, request.data)
        except TripLedgerError as exc:
            return ledger_error_response(exc)

        return Response({
            "message": result.message,
            "seats_remaining": result.seats_remaining,
        })

    def put(self, request, trip_id: int):
        try:
            result = trip_ledger.amend_reservation(trip_id, request.user, request.data)
        except TripLedgerError as exc:
            return ledger_error_response(exc)

        return Response({
            "message": result.message,
            "updated_reservation": ReservationSerializer(result.reservation).data,
            "seats_remaining": result.seats_remaining,
        })

    def delete(self, request, trip_id: int):
        try:
            result = trip_ledger.cancel_reservation(trip_id, request.user)
        except TripLedgerError as exc:
            return ledger_error_response(exc)

        return Response({
            "message": result.message,
            "seats_remaining": result.seats_remaining,
            "seats_released": result.seats_released,
        })


class RiderReservationsView(APIView):
    """
    GET: Every trip the rider holds seats on.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            reservations = trip_ledger.list_rider_reservations(request.user)
        except TripLedgerError as exc:
            return ledger_error_response(exc)

        if not reservations:
            return Response({"message": gettext("You have no reserved trips.")})

        serializer = RiderReservationSerializer(reservations, many=True)
        return Response({"reservations": serializer.data})
