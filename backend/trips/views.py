from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services import trip_ledger
from services.trip_ledger import TripLedgerError
from .responses import ledger_error_response
from .serializers import (
    TripSummarySerializer,
    TripDetailSerializer,
    TripSerializer,
)


# ==================== Trip Registry APIs ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def trip_list(request):
    """
    GET: List every published trip with its available seats.
         Full trips are listed too (seats_available == 0).
    POST: Publish a new trip (drivers only)
    """
    if request.method == 'POST':
        return _create_trip(request)

    try:
        trips = trip_ledger.list_available_trips()
    except TripLedgerError as exc:
        return ledger_error_response(exc)

    serializer = TripSummarySerializer(trips, many=True)
    return Response({'trips': serializer.data})


def _create_trip(request):
    try:
        result = trip_ledger.create_trip(request.user, request.data)
    except TripLedgerError as exc:
        return ledger_error_response(exc)

    return Response({
        'message': result.message,
        'trip_id': result.trip.id,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def trip_detail(request, trip_id):
    """
    GET: Trip details with the driver's car plate and picture
    PUT/PATCH: Owning driver edits the trip; only the fields sent are changed
    DELETE: Owning driver deletes the trip and every reservation on it
    """
    if request.method in ('PUT', 'PATCH'):
        return _edit_trip(request, trip_id)
    if request.method == 'DELETE':
        return _delete_trip(request, trip_id)

    try:
        trip = trip_ledger.get_trip_details(trip_id)
    except TripLedgerError as exc:
        return ledger_error_response(exc)

    serializer = TripDetailSerializer(trip, context={'request': request})
    return Response(serializer.data)


def _edit_trip(request, trip_id):
    try:
        result = trip_ledger.edit_trip(trip_id, request.user, request.data)
    except TripLedgerError as exc:
        return ledger_error_response(exc)

    return Response({
        'message': result.message,
        'updated_trip': TripSerializer(result.trip).data,
    })


def _delete_trip(request, trip_id):
    try:
        result = trip_ledger.delete_trip(trip_id, request.user)
    except TripLedgerError as exc:
        return ledger_error_response(exc)

    return Response({'message': result.message})
