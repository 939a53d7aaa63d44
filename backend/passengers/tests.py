from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from services import trip_ledger
from trips.models import Trip

from .views.reservations import RiderReservationsView, TripReservationView


class ReservationApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.driver = User.objects.create_user(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000001'
		)
		self.rider = User.objects.create_user(
			username='rider',
			password='pass1234',
			role='user',
			phone_number='9000000002'
		)
		self.trip = Trip.objects.create(
			driver=self.driver,
			initial_point='Central Station',
			final_point='Airport',
			route='Ring Road',
			hour='08:30',
			seats=4,
			price='12.50'
		)
		self.url = '/api/passenger/trips/%d/reservation/' % self.trip.id

	def call(self, method, data=None, user=None):
		request = getattr(self.factory, method)(self.url, data, format='json')
		force_authenticate(request, user=user or self.rider)
		return TripReservationView.as_view()(request, trip_id=self.trip.id)

	def test_reserve_seats(self):
		response = self.call('post', {'seats_reserved': 2, 'stops': ['Main St', '5th Ave']})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['seats_remaining'], 2)
		self.assertEqual(response.data['message'], 'Reserved 2 seats successfully: Main St, 5th Ave.')

	def test_reserve_with_mismatched_stops(self):
		response = self.call('post', {'seats_reserved': 3, 'stops': ['Main St']})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['success'], False)
		self.assertEqual(response.data['error'], 'stop_count_mismatch')
		self.assertEqual(response.data['details'], {'seats_reserved': 3, 'stops': 1})

	def test_reserve_more_than_available(self):
		response = self.call('post', {'seats_reserved': 5, 'stops': ['A', 'B', 'C', 'D', 'E']})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'capacity_exceeded')
		self.trip.refresh_from_db()
		self.assertEqual(self.trip.seats, 4)

	def test_reserve_twice(self):
		self.call('post', {'seats_reserved': 1, 'stops': ['A']})
		response = self.call('post', {'seats_reserved': 1, 'stops': ['B']})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'reservation_exists')

	def test_reserve_on_missing_trip(self):
		request = self.factory.post('/api/passenger/trips/999/reservation/', {'seats_reserved': 1, 'stops': ['A']}, format='json')
		force_authenticate(request, user=self.rider)
		response = TripReservationView.as_view()(request, trip_id=999)

		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'trip_not_found')

	def test_amend_reservation(self):
		self.call('post', {'seats_reserved': 2, 'stops': ['A', 'B']})
		response = self.call('put', {'seats_reserved': 3, 'stops': ['A', 'B', 'C']})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['seats_remaining'], 1)
		self.assertEqual(response.data['updated_reservation'], {
			'rider_id': self.rider.id,
			'stops': ['A', 'B', 'C'],
			'seats_reserved': 3,
		})

	def test_amend_without_reservation(self):
		response = self.call('put', {'seats_reserved': 1, 'stops': ['A']})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'no_active_reservation')

	def test_cancel_reservation(self):
		self.call('post', {'seats_reserved': 3, 'stops': ['A', 'B', 'C']})
		response = self.call('delete')

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['seats_released'], 3)
		self.assertEqual(response.data['seats_remaining'], 4)

	def test_cancel_without_reservation(self):
		response = self.call('delete')

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'no_active_reservation')


class RiderReservationsApiTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.driver = User.objects.create_user(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000001'
		)
		self.rider = User.objects.create_user(
			username='rider',
			password='pass1234',
			role='user',
			phone_number='9000000002'
		)

	def get(self):
		request = self.factory.get('/api/passenger/reservations/')
		force_authenticate(request, user=self.rider)
		return RiderReservationsView.as_view()(request)

	def test_no_reservations(self):
		response = self.get()

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data, {'message': 'You have no reserved trips.'})

	def test_lists_reserved_trips(self):
		trip = Trip.objects.create(
			driver=self.driver,
			initial_point='Central Station',
			final_point='Airport',
			route='Ring Road',
			hour='08:30',
			seats=4,
			price='12.50'
		)
		trip_ledger.reserve_seats(trip.id, self.rider, {'seats_reserved': 2, 'stops': ['A', 'B']})

		response = self.get()

		self.assertEqual(response.status_code, 200)
		reservation = response.data['reservations'][0]
		self.assertEqual(reservation['trip_id'], trip.id)
		self.assertEqual(reservation['final_point'], 'Airport')
		self.assertEqual(reservation['price'], Decimal('12.50'))
		self.assertEqual(reservation['seats_reserved'], 2)
		self.assertEqual(reservation['stops'], ['A', 'B'])
