from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from services import trip_ledger

from .views import DriverTripsView


class DriverTripsApiTests(TestCase):
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

	def get(self, user):
		request = self.factory.get('/api/driver/trips/')
		force_authenticate(request, user=user)
		return DriverTripsView.as_view()(request)

	def test_no_published_trips(self):
		response = self.get(self.driver)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data, {'message': 'You have not published any trips.'})

	def test_lists_trips_with_reserved_seats(self):
		trip = trip_ledger.create_trip(self.driver, {
			'initial_point': 'Central Station',
			'final_point': 'Airport',
			'route': 'Ring Road',
			'hour': '08:30',
			'seats': 4,
			'price': '12.50',
		}).trip
		trip_ledger.reserve_seats(trip.id, self.rider, {'seats_reserved': 3, 'stops': ['A', 'B', 'C']})

		response = self.get(self.driver)

		self.assertEqual(response.status_code, 200)
		listed = response.data['trips'][0]
		self.assertEqual(listed['trip_id'], trip.id)
		self.assertEqual(listed['seats'], 1)
		self.assertEqual(listed['reservations'], 3)

	def test_riders_cannot_list_driver_trips(self):
		response = self.get(self.rider)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'not_a_driver')
