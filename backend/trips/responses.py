"""Response helpers shared by the trip, passenger and driver views."""

from rest_framework.response import Response


def ledger_error_response(exc):
    """Render a TripLedgerError as an API error with its code and status."""
    body = {
        'success': False,
        'error': exc.code,
        'message': str(exc.message),
    }
    if exc.details is not None:
        body['details'] = exc.details
    return Response(body, status=exc.status_code)
