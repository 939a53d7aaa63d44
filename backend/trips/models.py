from django.db import models
from django.conf import settings

class Trip(models.Model):
    """A driver-published trip with a fixed number of seats on offer"""

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='trips'
    )

    initial_point = models.CharField(max_length=255)
    final_point = models.CharField(max_length=255)
    route = models.TextField()
    hour = models.CharField(max_length=50)

    # Remaining unreserved capacity
    seats = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)

    # Bumped on every write; conditional updates compare against it
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'trips'
        ordering = ['created_at', 'id']

    @property
    def reserved_seats(self):
        """Seats held across all reservations (one stop per seat)."""
        return sum(reservation.seats for reservation in self.passengers.all())

    def __str__(self):
        return f"Trip #{self.id} - {self.initial_point} -> {self.final_point}"


class Reservation(models.Model):
    """A rider's claim on seats of one trip, one stop description per seat."""

    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='passengers'
    )

    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reservations'
    )

    stops = models.JSONField(default=list)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'trip_reservations'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['trip', 'rider'],
                name='unique_trip_rider'
            )
        ]

    @property
    def seats(self):
        return len(self.stops)

    def __str__(self):
        return f"Reservation #{self.id} - Trip {self.trip_id} -> {self.rider} ({self.seats} seats)"
