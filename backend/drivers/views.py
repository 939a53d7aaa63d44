from django.utils.translation import gettext
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from drivers.serializers import DriverTripSerializer
from services import trip_ledger
from services.trip_ledger import TripLedgerError
from trips.responses import ledger_error_response


class DriverTripsView(APIView):
    """
    GET: Trips published by the authenticated driver, each with the
    number of seats riders have reserved on it.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            trips = trip_ledger.list_driver_trips(request.user)
        except TripLedgerError as exc:
            return ledger_error_response(exc)

        if not trips:
            return Response({"message": gettext("You have not published any trips.")})

        serializer = DriverTripSerializer(trips, many=True)
        return Response({"trips": serializer.data})
