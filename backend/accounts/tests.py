from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate
from rest_framework_simplejwt.views import TokenRefreshView

from drivers.models import Vehicle

from .models import User
from .views import LoginView, ProfileView, RegisterView


class AuthFlowTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def register(self, **data):
		request = self.factory.post('/api/auth/register/', data, format='json')
		return RegisterView.as_view()(request)

	def login(self, username, password):
		request = self.factory.post('/api/auth/login/', {'username': username, 'password': password}, format='json')
		return LoginView.as_view()(request)

	def test_register_rider_has_no_vehicle(self):
		response = self.register(
			username='rider',
			password='pass1234',
			email='rider@example.com',
			role='user',
			phone_number='9000000001',
			car_plate='IGNORED-1'
		)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['user']['is_driver'], False)
		self.assertIsNone(response.data['user']['vehicle'])
		self.assertIn('access', response.data['tokens'])
		self.assertFalse(Vehicle.objects.exists())

	def test_register_driver_returns_vehicle(self):
		response = self.register(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000002',
			car_plate='WB-1001',
			brand='Renault',
			color='Gris'
		)

		self.assertEqual(response.status_code, 201)
		vehicle = response.data['user']['vehicle']
		self.assertEqual(vehicle['car_plate'], 'WB-1001')
		self.assertEqual(vehicle['brand'], 'Renault')
		self.assertIsNone(vehicle['picture'])
		self.assertEqual(User.objects.get(username='driver').vehicle.color, 'Gris')

	def test_driver_needs_car_plate(self):
		response = self.register(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000002'
		)

		self.assertEqual(response.status_code, 400)
		self.assertIn('car_plate', response.data)
		self.assertFalse(User.objects.exists())

	def test_plate_must_be_unique(self):
		self.register(username='one', password='driver1234', role='driver', phone_number='9000000002', car_plate='WB-1001')
		response = self.register(username='two', password='driver1234', role='driver', phone_number='9000000003', car_plate='WB-1001')

		self.assertEqual(response.status_code, 400)
		self.assertIn('car_plate', response.data)
		self.assertFalse(User.objects.filter(username='two').exists())

	def test_login_returns_vehicle_and_refresh_works(self):
		self.register(username='driver', password='driver1234', role='driver', phone_number='9000000002', car_plate='WB-1001')

		response = self.login('driver', 'driver1234')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['user']['vehicle']['car_plate'], 'WB-1001')

		request = self.factory.post('/api/auth/refresh/', {'refresh': response.data['tokens']['refresh']}, format='json')
		response = TokenRefreshView.as_view()(request)
		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data)

	def test_login_with_wrong_password(self):
		User.objects.create_user(
			username='rider',
			password='pass1234',
			role='user',
			phone_number='9000000001'
		)

		response = self.login('rider', 'nope')

		self.assertEqual(response.status_code, 400)

	def test_refresh_with_garbage_token(self):
		request = self.factory.post('/api/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
		response = TokenRefreshView.as_view()(request)

		self.assertEqual(response.status_code, 401)


class ProfileTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def get(self, user):
		request = self.factory.get('/api/auth/profile/')
		force_authenticate(request, user=user)
		return ProfileView.as_view()(request)

	def test_rider_profile(self):
		rider = User.objects.create_user(
			username='rider',
			password='pass1234',
			role='user',
			phone_number='9000000001'
		)

		response = self.get(rider)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['username'], 'rider')
		self.assertIsNone(response.data['vehicle'])

	def test_driver_profile_shows_car(self):
		driver = User.objects.create_user(
			username='driver',
			password='driver1234',
			role='driver',
			phone_number='9000000002'
		)
		Vehicle.objects.create(driver=driver, car_plate='WB-1001', model='Logan')

		response = self.get(driver)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['is_driver'])
		self.assertEqual(response.data['vehicle']['car_plate'], 'WB-1001')
		self.assertEqual(response.data['vehicle']['model'], 'Logan')
