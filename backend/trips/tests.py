import threading
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, OperationalError, connection
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import translation
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from accounts.models import User
from drivers.models import Vehicle
from services import trip_ledger
from services.trip_ledger import ledger
from services.trip_ledger import (
	CapacityExceededError,
	DriverNotFoundError,
	InvalidInputError,
	NoActiveReservationError,
	NotDriverError,
	NotTripOwnerError,
	ReservationExistsError,
	StopCountMismatchError,
	StorageFailureError,
	TripConflictError,
	TripLedgerError,
	TripNotFoundError,
)
from passengers.views.reservations import TripReservationView

from .models import Reservation, Trip
from .views import trip_detail, trip_list


TRIP_DATA = {
	'initial_point': 'Central Station',
	'final_point': 'Airport',
	'route': 'Ring Road',
	'hour': '08:30',
	'seats': 4,
	'price': '12.50',
}


class LedgerTestCase(TestCase):
	def setUp(self):
		self.driver = User.objects.create_user(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000001'
		)
		self.other_driver = User.objects.create_user(
			username='other_driver',
			password='driver1234',
			role='driver',
			phone_number='9000000002'
		)
		self.rider_a = User.objects.create_user(
			username='rider_a',
			password='pass1234',
			role='user',
			phone_number='9000000003'
		)
		self.rider_b = User.objects.create_user(
			username='rider_b',
			password='pass1234',
			role='user',
			phone_number='9000000004'
		)
		self.trip = trip_ledger.create_trip(self.driver, TRIP_DATA).trip

	def reserve(self, rider, *stops):
		return trip_ledger.reserve_seats(
			self.trip.id, rider, {'seats_reserved': len(stops), 'stops': list(stops)}
		)


class TripRegistryTests(LedgerTestCase):
	def test_create_trip_stores_all_fields(self):
		self.assertEqual(self.trip.driver, self.driver)
		self.assertEqual(self.trip.seats, 4)
		self.assertEqual(self.trip.price, Decimal('12.50'))
		self.assertEqual(self.trip.version, 0)

	def test_create_trip_requires_driver_role(self):
		with self.assertRaises(NotDriverError):
			trip_ledger.create_trip(self.rider_a, TRIP_DATA)

	def test_create_trip_rejects_non_positive_numbers(self):
		for field, value in (('seats', 0), ('price', '0'), ('seats', 'many')):
			data = dict(TRIP_DATA, **{field: value})
			with self.assertRaises(InvalidInputError) as ctx:
				trip_ledger.create_trip(self.driver, data)
			self.assertIn(field, ctx.exception.details)

		self.assertEqual(Trip.objects.count(), 1)

	def test_create_trip_rejects_missing_field(self):
		data = dict(TRIP_DATA)
		del data['route']

		with self.assertRaises(InvalidInputError):
			trip_ledger.create_trip(self.driver, data)

	def test_full_trips_stay_listed(self):
		self.reserve(self.rider_a, 'A', 'B', 'C', 'D')

		trips = trip_ledger.list_available_trips()

		self.assertEqual([t.id for t in trips], [self.trip.id])
		self.assertEqual(trips[0].seats, 0)

	def test_get_trip_details_missing_trip(self):
		with self.assertRaises(TripNotFoundError):
			trip_ledger.get_trip_details(self.trip.id + 100)

	def test_get_trip_details_after_driver_deleted(self):
		self.driver.delete()

		self.assertTrue(Trip.objects.filter(pk=self.trip.id, driver__isnull=True).exists())
		with self.assertRaises(DriverNotFoundError):
			trip_ledger.get_trip_details(self.trip.id)

	def test_edit_trip_applies_only_present_fields(self):
		result = trip_ledger.edit_trip(self.trip.id, self.driver, {'seats': 0, 'route': ''})

		self.trip.refresh_from_db()
		self.assertEqual(result.trip.seats, 0)
		self.assertEqual(self.trip.seats, 0)
		self.assertEqual(self.trip.route, '')
		self.assertEqual(self.trip.hour, '08:30')
		self.assertEqual(self.trip.price, Decimal('12.50'))
		self.assertEqual(self.trip.version, 1)

	def test_edit_trip_keeps_reservations(self):
		self.reserve(self.rider_a, 'A', 'B')

		trip_ledger.edit_trip(self.trip.id, self.driver, {'seats': 10})

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 10)
		self.assertEqual(self.trip.reserved_seats, 2)

	def test_edit_trip_rejects_invalid_price(self):
		with self.assertRaises(InvalidInputError):
			trip_ledger.edit_trip(self.trip.id, self.driver, {'price': '-1'})

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.version, 0)

	def test_edit_trip_by_other_driver_is_forbidden(self):
		with self.assertRaises(NotTripOwnerError):
			trip_ledger.edit_trip(self.trip.id, self.other_driver, {'seats': 1})

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)

	@patch('services.trip_ledger.ledger.notify_trip_riders')
	def test_edit_trip_notifies_riders_after_commit(self, mock_notify):
		self.reserve(self.rider_a, 'A')

		with self.captureOnCommitCallbacks(execute=True):
			trip_ledger.edit_trip(self.trip.id, self.driver, {'hour': '09:00'})

		mock_notify.assert_called_once()
		args = mock_notify.call_args.args
		self.assertEqual(args[0], 'trip_updated')
		self.assertEqual(args[1].hour, '09:00')
		self.assertEqual(args[2], [self.rider_a.id])

	def test_delete_trip_by_other_driver_is_forbidden(self):
		with self.assertRaises(NotTripOwnerError):
			trip_ledger.delete_trip(self.trip.id, self.other_driver)

		self.assertTrue(Trip.objects.filter(pk=self.trip.id).exists())

	@patch('services.trip_ledger.ledger.notify_trip_riders')
	def test_delete_trip_removes_reservations_and_notifies(self, mock_notify):
		self.reserve(self.rider_a, 'A')
		self.reserve(self.rider_b, 'B', 'C')

		with self.captureOnCommitCallbacks(execute=True):
			trip_ledger.delete_trip(self.trip.id, self.driver)

		self.assertFalse(Trip.objects.filter(pk=self.trip.id).exists())
		self.assertEqual(Reservation.objects.count(), 0)

		mock_notify.assert_called_once()
		args = mock_notify.call_args.args
		self.assertEqual(args[0], 'trip_deleted')
		self.assertEqual(sorted(args[2]), sorted([self.rider_a.id, self.rider_b.id]))

	def test_delete_missing_trip(self):
		with self.assertRaises(TripNotFoundError):
			trip_ledger.delete_trip(self.trip.id + 100, self.driver)

	def test_list_driver_trips_counts_reserved_seats(self):
		trip_ledger.create_trip(self.other_driver, TRIP_DATA)
		self.reserve(self.rider_a, 'A', 'B')
		self.reserve(self.rider_b, 'C')

		trips = trip_ledger.list_driver_trips(self.driver)

		self.assertEqual(len(trips), 1)
		self.assertEqual(trips[0].reserved_seats, 3)
		self.assertEqual(trips[0].seats, 1)

	def test_list_driver_trips_requires_driver_role(self):
		with self.assertRaises(NotDriverError):
			trip_ledger.list_driver_trips(self.rider_a)

	def test_storage_failure_is_reported(self):
		with patch.object(Trip.objects, 'all', side_effect=DatabaseError('disk I/O error')):
			with self.assertLogs('services.trip_ledger.ledger', level='ERROR'):
				with self.assertRaises(StorageFailureError):
					trip_ledger.list_available_trips()


class SeatAccountingTests(LedgerTestCase):
	def test_reserve_amend_and_overbook(self):
		result = self.reserve(self.rider_a, 'A', 'B')
		self.assertEqual(result.seats_remaining, 2)
		self.assertEqual(result.message, 'Reserved 2 seats successfully: A, B.')

		result = trip_ledger.amend_reservation(
			self.trip.id, self.rider_a, {'seats_reserved': 3, 'stops': ['A', 'B', 'C']}
		)
		self.assertEqual(result.seats_remaining, 1)
		self.assertEqual(result.reservation.stops, ['A', 'B', 'C'])

		with self.assertRaises(CapacityExceededError):
			self.reserve(self.rider_b, 'D', 'E')

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 1)
		self.assertEqual(self.trip.passengers.count(), 1)

	def test_reserve_then_cancel_restores_seats(self):
		self.reserve(self.rider_a, 'A', 'B', 'C')

		result = trip_ledger.cancel_reservation(self.trip.id, self.rider_a)

		self.assertEqual(result.seats_released, 3)
		self.assertEqual(result.seats_remaining, 4)
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)
		self.assertFalse(self.trip.passengers.exists())

	def test_stop_count_must_match_seats(self):
		with self.assertRaises(StopCountMismatchError) as ctx:
			trip_ledger.reserve_seats(
				self.trip.id, self.rider_a, {'seats_reserved': 2, 'stops': ['A']}
			)

		self.assertEqual(ctx.exception.details, {'seats_reserved': 2, 'stops': 1})
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)

	def test_stop_count_checked_before_trip_lookup(self):
		with self.assertRaises(StopCountMismatchError):
			trip_ledger.reserve_seats(
				self.trip.id + 100, self.rider_a, {'seats_reserved': 1, 'stops': ['A', 'B']}
			)

	def test_reserve_rejects_empty_request(self):
		with self.assertRaises(InvalidInputError):
			trip_ledger.reserve_seats(self.trip.id, self.rider_a, {'seats_reserved': 0, 'stops': []})

	def test_reserve_missing_trip(self):
		with self.assertRaises(TripNotFoundError):
			trip_ledger.reserve_seats(
				self.trip.id + 100, self.rider_a, {'seats_reserved': 1, 'stops': ['A']}
			)

	def test_second_reservation_by_same_rider_is_rejected(self):
		self.reserve(self.rider_a, 'A')

		with self.assertRaises(ReservationExistsError):
			self.reserve(self.rider_a, 'B')

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 3)

	def test_integrity_error_maps_to_existing_reservation(self):
		with patch.object(Reservation.objects, 'create', side_effect=IntegrityError('unique_trip_rider')):
			with self.assertRaises(ReservationExistsError):
				self.reserve(self.rider_a, 'A')

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)

	def test_amend_can_use_own_seats(self):
		self.reserve(self.rider_a, 'A', 'B')
		self.reserve(self.rider_b, 'C', 'D')

		with self.assertRaises(CapacityExceededError):
			trip_ledger.amend_reservation(
				self.trip.id, self.rider_a, {'seats_reserved': 3, 'stops': ['A', 'B', 'E']}
			)

		result = trip_ledger.amend_reservation(
			self.trip.id, self.rider_a, {'seats_reserved': 1, 'stops': ['A']}
		)
		self.assertEqual(result.seats_remaining, 1)

	def test_amend_keeps_passenger_order(self):
		self.reserve(self.rider_a, 'A')
		self.reserve(self.rider_b, 'B')

		trip_ledger.amend_reservation(
			self.trip.id, self.rider_a, {'seats_reserved': 2, 'stops': ['A', 'Z']}
		)

		riders = list(self.trip.passengers.values_list('rider_id', flat=True))
		self.assertEqual(riders, [self.rider_a.id, self.rider_b.id])

	def test_cancel_and_amend_without_reservation(self):
		with self.assertRaises(NoActiveReservationError):
			trip_ledger.cancel_reservation(self.trip.id, self.rider_a)

		with self.assertRaises(NoActiveReservationError):
			trip_ledger.amend_reservation(
				self.trip.id, self.rider_a, {'seats_reserved': 1, 'stops': ['A']}
			)

	def test_cancel_after_rejected_request_restores_capacity(self):
		result = self.reserve(self.rider_a, 'A', 'B')
		self.assertEqual(result.seats_remaining, 2)

		with self.assertRaises(CapacityExceededError):
			self.reserve(self.rider_b, 'C', 'D', 'E')

		result = trip_ledger.cancel_reservation(self.trip.id, self.rider_a)
		self.assertEqual(result.seats_remaining, 4)
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)
		self.assertFalse(self.trip.passengers.exists())

	def test_amend_without_reservation_wins_over_bad_stops(self):
		with self.assertRaises(NoActiveReservationError):
			trip_ledger.amend_reservation(
				self.trip.id, self.rider_a, {'seats_reserved': 2, 'stops': ['A']}
			)

	def test_amend_with_mismatched_stops_changes_nothing(self):
		self.reserve(self.rider_a, 'A')

		with self.assertRaises(StopCountMismatchError):
			trip_ledger.amend_reservation(
				self.trip.id, self.rider_a, {'seats_reserved': 3, 'stops': ['A', 'B']}
			)

		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 3)
		self.assertEqual(self.trip.passengers.get().stops, ['A'])

	def test_list_rider_reservations(self):
		second = trip_ledger.create_trip(self.other_driver, TRIP_DATA).trip
		self.reserve(self.rider_a, 'A')
		trip_ledger.reserve_seats(second.id, self.rider_a, {'seats_reserved': 2, 'stops': ['B', 'C']})

		reservations = trip_ledger.list_rider_reservations(self.rider_a)

		self.assertEqual([r.trip_id for r in reservations], [self.trip.id, second.id])
		self.assertEqual([r.seats for r in reservations], [1, 2])
		self.assertEqual(trip_ledger.list_rider_reservations(self.rider_b), [])

	@patch('services.trip_ledger.ledger.notify_trip_driver')
	def test_driver_notified_of_reservation_changes(self, mock_notify):
		with self.captureOnCommitCallbacks(execute=True):
			self.reserve(self.rider_a, 'A', 'B')

		args = mock_notify.call_args.args
		self.assertEqual(args[0], 'seats_reserved')
		self.assertEqual(args[3], {'rider_id': self.rider_a.id, 'seats_reserved': 2})

		with self.captureOnCommitCallbacks(execute=True):
			trip_ledger.cancel_reservation(self.trip.id, self.rider_a)

		args = mock_notify.call_args.args
		self.assertEqual(args[0], 'reservation_cancelled')
		self.assertEqual(args[3], {'rider_id': self.rider_a.id, 'seats_released': 2})

	@patch('services.trip_ledger.ledger.notify_trip_driver')
	def test_failed_reservation_sends_nothing(self, mock_notify):
		with self.captureOnCommitCallbacks(execute=True):
			with self.assertRaises(CapacityExceededError):
				self.reserve(self.rider_a, 'A', 'B', 'C', 'D', 'E')

		mock_notify.assert_not_called()


class ConcurrentWriteTests(LedgerTestCase):
	"""A stale snapshot is simulated by handing out a trip with an outdated version."""

	def stale_loader(self, stale_calls):
		real_load = ledger._load_trip
		calls = []

		def load(trip_id, for_update=False):
			trip = real_load(trip_id, for_update=for_update)
			calls.append(trip_id)
			if len(calls) <= stale_calls:
				trip.version += 7
			return trip

		return load, calls

	def test_stale_write_is_retried(self):
		load, calls = self.stale_loader(stale_calls=1)

		with patch('services.trip_ledger.ledger._load_trip', side_effect=load):
			with self.assertLogs('services.trip_ledger.ledger', level='INFO') as logs:
				result = self.reserve(self.rider_a, 'A', 'B')

		self.assertEqual(len(calls), 2)
		self.assertTrue(any('retrying' in line for line in logs.output))
		self.assertEqual(result.seats_remaining, 2)
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 2)
		self.assertEqual(self.trip.version, 1)
		self.assertEqual(self.trip.passengers.count(), 1)

	@override_settings(TRIP_LEDGER_WRITE_ATTEMPTS=2)
	def test_conflict_after_exhausted_attempts(self):
		load, calls = self.stale_loader(stale_calls=10)

		with patch('services.trip_ledger.ledger._load_trip', side_effect=load):
			with self.assertRaises(TripConflictError) as ctx:
				self.reserve(self.rider_a, 'A')

		self.assertEqual(ctx.exception.status_code, 409)
		self.assertEqual(len(calls), 2)
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)
		self.assertFalse(Reservation.objects.exists())

	def test_stale_cancel_does_not_lose_the_reservation(self):
		self.reserve(self.rider_a, 'A', 'B')
		load, calls = self.stale_loader(stale_calls=1)

		with patch('services.trip_ledger.ledger._load_trip', side_effect=load):
			result = trip_ledger.cancel_reservation(self.trip.id, self.rider_a)

		self.assertEqual(len(calls), 2)
		self.assertEqual(result.seats_released, 2)
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)
		self.assertFalse(Reservation.objects.exists())

	def test_locked_database_is_retried(self):
		real_load = ledger._load_trip
		calls = []

		def load(trip_id, for_update=False):
			calls.append(trip_id)
			if len(calls) == 1:
				raise OperationalError('database is locked')
			return real_load(trip_id, for_update=for_update)

		with patch('services.trip_ledger.ledger._load_trip', side_effect=load):
			result = self.reserve(self.rider_a, 'A')

		self.assertEqual(len(calls), 2)
		self.assertEqual(result.seats_remaining, 3)

	def test_other_operational_errors_are_storage_failures(self):
		with patch('services.trip_ledger.ledger._load_trip', side_effect=OperationalError('no such table: trips')):
			with self.assertLogs('services.trip_ledger.ledger', level='ERROR'):
				with self.assertRaises(StorageFailureError):
					self.reserve(self.rider_a, 'A')


class TripApiTests(LedgerTestCase):
	def setUp(self):
		super().setUp()
		self.factory = APIRequestFactory()

	def test_publish_trip(self):
		request = self.factory.post('/api/trips/', TRIP_DATA, format='json')
		force_authenticate(request, user=self.other_driver)
		response = trip_list(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['message'], 'Trip registered successfully.')
		self.assertTrue(Trip.objects.filter(pk=response.data['trip_id'], driver=self.other_driver).exists())

	def test_publish_trip_as_rider_is_forbidden(self):
		request = self.factory.post('/api/trips/', TRIP_DATA, format='json')
		force_authenticate(request, user=self.rider_a)
		response = trip_list(request)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['success'], False)
		self.assertEqual(response.data['error'], 'not_a_driver')

	def test_publish_trip_with_bad_price(self):
		request = self.factory.post('/api/trips/', dict(TRIP_DATA, price='abc'), format='json')
		force_authenticate(request, user=self.driver)
		response = trip_list(request)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_input')
		self.assertIn('price', response.data['details'])

	def test_list_trips(self):
		request = self.factory.get('/api/trips/')
		force_authenticate(request, user=self.rider_a)
		response = trip_list(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(len(response.data['trips']), 1)
		listed = response.data['trips'][0]
		self.assertEqual(listed['trip_id'], self.trip.id)
		self.assertEqual(listed['seats_available'], 4)
		self.assertEqual(listed['price'], Decimal('12.50'))

	def test_list_trips_requires_authentication(self):
		request = self.factory.get('/api/trips/')
		response = trip_list(request)

		self.assertEqual(response.status_code, 401)

	def test_trip_details_include_vehicle(self):
		Vehicle.objects.create(driver=self.driver, car_plate='WB-1001')

		request = self.factory.get('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=self.rider_a)
		response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['driver_id'], self.driver.id)
		self.assertEqual(response.data['car_plate'], 'WB-1001')
		self.assertIsNone(response.data['car_picture'])

	def test_trip_details_without_vehicle(self):
		request = self.factory.get('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=self.rider_a)
		response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 200)
		self.assertIsNone(response.data['car_plate'])

	def test_trip_details_not_found(self):
		request = self.factory.get('/api/trips/999/')
		force_authenticate(request, user=self.rider_a)
		response = trip_detail(request, trip_id=999)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'trip_not_found')

	def test_patch_trip(self):
		self.reserve(self.rider_a, 'A')

		request = self.factory.patch('/api/trips/%d/' % self.trip.id, {'price': '15.00'}, format='json')
		force_authenticate(request, user=self.driver)
		response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 200)
		updated = response.data['updated_trip']
		self.assertEqual(updated['price'], Decimal('15.00'))
		self.assertEqual(updated['seats'], 3)
		self.assertEqual(updated['passengers'], [
			{'rider_id': self.rider_a.id, 'stops': ['A'], 'seats_reserved': 1},
		])

	def test_delete_trip_by_rider_is_forbidden(self):
		request = self.factory.delete('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=self.rider_a)
		response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'not_trip_owner')

	def test_delete_trip(self):
		request = self.factory.delete('/api/trips/%d/' % self.trip.id)
		force_authenticate(request, user=self.driver)
		response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['message'], 'Trip deleted successfully.')
		self.assertFalse(Trip.objects.exists())

	def test_conflict_maps_to_409(self):
		with patch('trips.views.trip_ledger.edit_trip', side_effect=TripConflictError()):
			request = self.factory.patch('/api/trips/%d/' % self.trip.id, {'seats': 2}, format='json')
			force_authenticate(request, user=self.driver)
			response = trip_detail(request, trip_id=self.trip.id)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['error'], 'trip_conflict')


class TranslatedMessageTests(LedgerTestCase):
	def test_errors_follow_active_language(self):
		with translation.override('es'):
			self.assertEqual(str(CapacityExceededError().message), 'No hay suficientes cupos disponibles.')
			self.assertEqual(str(TripNotFoundError().message), 'Viaje no encontrado.')

		self.assertEqual(str(CapacityExceededError().message), 'Not enough seats available.')

	def test_reservation_messages_in_spanish(self):
		with translation.override('es'):
			reserved = self.reserve(self.rider_a, 'A', 'B')
			cancelled = trip_ledger.cancel_reservation(self.trip.id, self.rider_a)
			self.reserve(self.rider_b, 'C')
			single = trip_ledger.cancel_reservation(self.trip.id, self.rider_b)

		self.assertEqual(reserved.message, 'Has reservado 2 cupos exitosamente: A, B.')
		self.assertEqual(cancelled.message, 'Reserva cancelada exitosamente. Se han liberado 2 cupos.')
		self.assertEqual(single.message, 'Reserva cancelada exitosamente. Se ha liberado 1 cupo.')

	def test_api_error_body_in_spanish(self):
		request = APIRequestFactory().get('/api/trips/999/')
		force_authenticate(request, user=self.rider_a)

		with translation.override('es'):
			response = trip_detail(request, trip_id=999)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['message'], 'Viaje no encontrado.')


class ConcurrentReservationTests(TransactionTestCase):
	"""Riders hitting the same trip at the same moment, each on its own connection."""

	def setUp(self):
		self.driver = User.objects.create_user(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000001'
		)
		self.trip = trip_ledger.create_trip(self.driver, TRIP_DATA).trip
		self.riders = [
			User.objects.create_user(
				username='rider_%d' % i,
				password='pass1234',
				role='user',
				phone_number='91000000%02d' % i
			)
			for i in range(8)
		]

	def reserve_all(self, riders):
		factory = APIRequestFactory()
		barrier = threading.Barrier(len(riders), timeout=30)
		responses = []
		lock = threading.Lock()

		def worker(rider):
			try:
				request = factory.post(
					'/api/passenger/trips/%d/reservation/' % self.trip.id,
					{'seats_reserved': 1, 'stops': [rider.username]},
					format='json'
				)
				force_authenticate(request, user=rider)
				barrier.wait()
				response = TripReservationView.as_view()(request, trip_id=self.trip.id)
				with lock:
					responses.append(response)
			finally:
				connection.close()

		threads = [threading.Thread(target=worker, args=(rider,)) for rider in riders]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join(timeout=60)

		return responses

	def held_seats(self):
		return sum(reservation.seats for reservation in Reservation.objects.filter(trip_id=self.trip.id))

	@patch('services.trip_ledger.ledger.notify_trip_driver')
	def test_simultaneous_reservations_never_overbook(self, mock_notify):
		responses = self.reserve_all(self.riders)

		self.assertEqual(len(responses), 8)
		granted = [response for response in responses if response.status_code == 200]
		for response in responses:
			if response.status_code != 200:
				self.assertIn(
					(response.status_code, response.data['error']),
					{(400, 'capacity_exceeded'), (409, 'trip_conflict')}
				)

		self.trip.refresh_from_db()
		held = self.held_seats()
		self.assertEqual(self.trip.seats + held, 4)
		self.assertEqual(held, len(granted))
		self.assertLessEqual(held, 4)

	@patch('services.trip_ledger.ledger.notify_trip_driver')
	def test_simultaneous_reservations_with_free_seats(self, mock_notify):
		Trip.objects.filter(pk=self.trip.id).update(seats=8)

		responses = self.reserve_all(self.riders[:6])

		self.assertEqual(len(responses), 6)
		for response in responses:
			self.assertIn(response.status_code, (200, 409))

		self.trip.refresh_from_db()
		held = self.held_seats()
		self.assertEqual(self.trip.seats + held, 8)
		self.assertEqual(held, sum(1 for response in responses if response.status_code == 200))
