from decimal import Decimal

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase
from rest_framework_simplejwt.tokens import AccessToken
from unittest.mock import AsyncMock, MagicMock, patch

from accounts.models import User
from trips.models import Trip

from .consumers import TripEventsConsumer
from .middleware import JWTAuthMiddleware
from .notifications import notify_trip_riders, notify_user_event, user_group


def make_trip(**overrides):
	fields = dict(
		id=7,
		driver_id=3,
		initial_point='Central Station',
		final_point='Airport',
		route='Ring Road',
		hour='08:30',
		seats=2,
		price=Decimal('12.50'),
	)
	fields.update(overrides)
	return Trip(**fields)


class NotificationTests(SimpleTestCase):
	def subscribe(self, user_id):
		layer = get_channel_layer()
		channel = async_to_sync(layer.new_channel)()
		async_to_sync(layer.group_add)(user_group(user_id), channel)
		return layer, channel

	def test_event_reaches_user_group(self):
		layer, channel = self.subscribe(101)

		sent = notify_user_event('seats_reserved', 101, make_trip(), 'A rider reserved seats.', {'rider_id': 5})

		self.assertTrue(sent)
		message = async_to_sync(layer.receive)(channel)
		self.assertEqual(message['type'], 'seats_reserved')
		self.assertEqual(message['trip_id'], 7)
		self.assertEqual(message['trip_data']['seats_available'], 2)
		self.assertEqual(message['trip_data']['price'], 12.5)
		self.assertEqual(message['rider_id'], 5)
		self.assertEqual(message['message'], 'A rider reserved seats.')

	def test_trip_without_driver_is_skipped(self):
		self.assertFalse(notify_user_event('seats_reserved', None, make_trip(driver_id=None)))

	def test_send_failure_is_logged_not_raised(self):
		layer = MagicMock()
		layer.group_send = AsyncMock(side_effect=RuntimeError('redis down'))

		with patch('realtime.notifications.get_channel_layer', return_value=layer):
			with self.assertLogs('realtime.notifications', level='ERROR'):
				sent = notify_user_event('trip_updated', 102, make_trip())

		self.assertFalse(sent)

	def test_riders_counted(self):
		with patch('realtime.notifications.notify_user_event', side_effect=[True, False, True]) as mock_notify:
			sent = notify_trip_riders('trip_deleted', make_trip(), [1, 2, 3], 'Trip deleted.')

		self.assertEqual(sent, 2)
		self.assertEqual(mock_notify.call_count, 3)


class TripEventsConsumerTests(SimpleTestCase):
	def setUp(self):
		self.user = User(id=201, username='driver', role='driver')

	async def connect(self, user):
		communicator = WebsocketCommunicator(TripEventsConsumer.as_asgi(), '/ws/events/')
		communicator.scope['user'] = user
		connected, _ = await communicator.connect()
		return communicator, connected

	async def test_anonymous_connection_is_rejected(self):
		communicator, connected = await self.connect(AnonymousUser())

		self.assertFalse(connected)

	async def test_connect_and_ping(self):
		communicator, connected = await self.connect(self.user)
		self.assertTrue(connected)

		greeting = await communicator.receive_json_from()
		self.assertEqual(greeting, {'type': 'connection_established', 'user_id': 201, 'role': 'driver'})

		await communicator.send_json_to({'type': 'ping'})
		self.assertEqual(await communicator.receive_json_from(), {'type': 'pong'})

		await communicator.send_json_to({'type': 'subscribe'})
		reply = await communicator.receive_json_from()
		self.assertEqual(reply['type'], 'error')

		await communicator.disconnect()

	async def test_group_event_is_forwarded(self):
		communicator, connected = await self.connect(self.user)
		self.assertTrue(connected)
		await communicator.receive_json_from()

		await get_channel_layer().group_send(user_group(201), {
			'type': 'trip_deleted',
			'trip_id': 7,
			'trip_data': {'trip_id': 7, 'seats_available': 0},
			'message': 'The driver deleted this trip.',
		})

		event = await communicator.receive_json_from()
		self.assertEqual(event, {
			'type': 'trip_deleted',
			'trip_id': 7,
			'trip': {'trip_id': 7, 'seats_available': 0},
			'message': 'The driver deleted this trip.',
		})

		await communicator.disconnect()


class JWTAuthMiddlewareTests(SimpleTestCase):
	def setUp(self):
		self.user = User(id=301, username='rider', role='user')
		self.seen = []

		async def inner(scope, receive, send):
			self.seen.append(scope['user'])

		self.middleware = JWTAuthMiddleware(inner)

	async def test_valid_token_resolves_user(self):
		token = str(AccessToken.for_user(self.user))

		with patch('realtime.middleware._get_user', new=AsyncMock(return_value=self.user)) as mock_get:
			await self.middleware({'type': 'websocket', 'query_string': ('token=%s' % token).encode()}, None, None)

		mock_get.assert_awaited_once()
		self.assertIs(self.seen[0], self.user)

	async def test_bad_or_missing_token_is_anonymous(self):
		await self.middleware({'type': 'websocket', 'query_string': b'token=garbage'}, None, None)
		await self.middleware({'type': 'websocket', 'query_string': b''}, None, None)

		self.assertTrue(all(user.is_anonymous for user in self.seen))
