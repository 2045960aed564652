import unittest
from unittest.mock import patch
from fastapi.testclient import TestClient
from stockpile.api import api_ai
from stockpile.api.api_run import app
from stockpile.api.routes import ai as ai_routes
from stockpile.api.state import reset_store
from stockpile.domain.errors import AIUnavailableError
from stockpile.events.Event_Bus import EventBus
from stockpile.events.web_observers import start as start_event_observers


async def fake_fetcher(name):
    return {"search_query": f"{name} まとめ買い", "reason": "在庫が少なくなっています"}


class TestInventoryAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.bus = EventBus()
        start_event_observers(self.bus)
        self.store = reset_store(event_bus=self.bus)
        self._previous_fetcher = app.state.restock_fetcher
        app.state.restock_fetcher = fake_fetcher

    def tearDown(self):
        app.state.restock_fetcher = self._previous_fetcher

    def _add_water(self, quantity=6):
        resp = self.client.post('/api/inventory', json={
            'name': '保存水', 'quantity': quantity, 'max_quantity': 12, 'unit': '本',
            'expiry_date': '2027-05-10', 'category': 'water', 'is_rolling_stock': True,
        })
        self.assertEqual(resp.status_code, 201)
        return resp.json()

    def test_add_item_creates_enriched_entry(self):
        data = self._add_water()
        self.assertEqual(len(data['shopping_list_changes']['added']), 1)
        item_id = data['item']['id']

        resp = self.client.get('/api/shopping-list')
        self.assertEqual(resp.status_code, 200)
        items = resp.json()['items']
        self.assertEqual(len(items), 1)
        entry = items[0]
        self.assertEqual(entry['name'], '保存水')
        self.assertEqual(entry['quantity'], 6)
        self.assertFalse(entry['checked'])
        # background enrichment has run by the time the client gets the response
        self.assertEqual(entry['enrichment'], 'ready')
        self.assertEqual(entry['search_query'], '保存水 まとめ買い')

        resp = self.client.get(f'/api/inventory/{item_id}')
        self.assertEqual(resp.json()['quantity'], 6)

    def test_quantity_changes_drive_the_list(self):
        item_id = self._add_water()['item']['id']
        resp = self.client.post(f'/api/inventory/{item_id}/quantity', json={'delta': 6})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['item']['quantity'], 12)
        self.assertEqual(self.client.get('/api/shopping-list').json()['count'], 0)

        resp = self.client.post(f'/api/inventory/{item_id}/quantity', json={'delta': -20})
        self.assertEqual(resp.json()['item']['quantity'], 0)
        items = self.client.get('/api/shopping-list').json()['items']
        self.assertEqual(items[0]['quantity'], 12)

        resp = self.client.put(f'/api/inventory/{item_id}/quantity', json={'quantity': 10})
        self.assertEqual(self.client.get('/api/shopping-list').json()['items'][0]['quantity'], 2)

    def test_checked_entry_is_archived(self):
        item_id = self._add_water()['item']['id']
        entry_id = self.client.get('/api/shopping-list').json()['items'][0]['id']
        resp = self.client.post(f'/api/shopping-list/{entry_id}/toggle')
        self.assertTrue(resp.json()['checked'])

        self.client.put(f'/api/inventory/{item_id}/quantity', json={'quantity': 12})
        self.client.put(f'/api/inventory/{item_id}/quantity', json={'quantity': 6})
        items = self.client.get('/api/shopping-list').json()['items']
        self.assertEqual([i['id'] for i in items], [entry_id])

        resp = self.client.post('/api/shopping-list/clear-checked')
        self.assertEqual(resp.json()['total_cleared'], 1)
        self.assertEqual(self.client.get('/api/shopping-list').json()['count'], 0)

    def test_edit_and_toggle_rolling_stock(self):
        item_id = self._add_water()['item']['id']
        resp = self.client.patch(f'/api/inventory/{item_id}', json={'max_quantity': 8, 'notes': '玄関'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['item']['notes'], '玄関')
        self.assertEqual(self.client.get('/api/shopping-list').json()['items'][0]['quantity'], 2)

        resp = self.client.post(f'/api/inventory/{item_id}/rolling-stock')
        self.assertFalse(resp.json()['item']['is_rolling_stock'])

    def test_patch_rejects_null_for_required_fields(self):
        resp = self.client.post('/api/inventory', json={
            'name': '保存水', 'quantity': 12, 'max_quantity': 12, 'is_rolling_stock': True,
        })
        item_id = resp.json()['item']['id']
        resp = self.client.patch(f'/api/inventory/{item_id}', json={'quantity': None, 'is_rolling_stock': None})
        self.assertEqual(resp.status_code, 422)
        item = self.client.get(f'/api/inventory/{item_id}').json()
        self.assertEqual(item['quantity'], 12)
        self.assertTrue(item['is_rolling_stock'])
        self.assertEqual(self.client.get('/api/shopping-list').json()['count'], 0)

        for field in ('category', 'unit', 'calories', 'location'):
            resp = self.client.patch(f'/api/inventory/{item_id}', json={field: None})
            self.assertEqual(resp.status_code, 422, field)

    def test_patch_can_clear_target_and_expiry(self):
        item_id = self._add_water()['item']['id']
        resp = self.client.patch(f'/api/inventory/{item_id}', json={'max_quantity': None, 'expiry_date': None})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()['item']['expiry_date'])

    def test_delete_item(self):
        item_id = self._add_water()['item']['id']
        self.assertEqual(self.client.delete(f'/api/inventory/{item_id}').status_code, 200)
        self.assertEqual(self.client.get('/api/inventory').json()['count'], 0)

    def test_errors(self):
        self.assertEqual(self.client.get('/api/inventory/missing').status_code, 404)
        self.assertEqual(self.client.post('/api/inventory/missing/quantity', json={'delta': 1}).status_code, 404)
        self.assertEqual(self.client.post('/api/shopping-list/missing/toggle').status_code, 404)
        resp = self.client.post('/api/inventory', json={'name': '水', 'quantity': -1})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.post('/api/inventory', json={'name': '   '})
        self.assertEqual(resp.status_code, 422)

    def test_dashboard(self):
        self.client.post('/api/inventory', json={
            'name': 'アルファ米', 'quantity': 10, 'max_quantity': 10, 'calories': 300,
            'expiry_date': '2000-01-01', 'is_rolling_stock': True,
        })
        data = self.client.get('/api/dashboard').json()
        self.assertEqual(data['total_calories'], 3000)
        self.assertEqual(data['survival_days'], 1)
        self.assertEqual(data['stock_health'], 100)
        self.assertEqual(data['expiring_soon'][0]['name'], 'アルファ米')
        self.assertTrue(data['expiring_soon'][0]['expired'])

    def test_events_feed(self):
        cursor = self.client.get('/api/events').json()['next_cursor']
        self._add_water()
        events = self.client.get('/api/events', params={'since': cursor}).json()['events']
        types = [e['type'] for e in events]
        self.assertIn('shopping.entry_added', types)
        self.assertIn('shopping.entry_enriched', types)
        self.assertTrue(all(e['name'] == '保存水' for e in events))


class TestAIRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        reset_store(event_bus=EventBus())

    def test_scan_returns_draft(self):
        identified = {"name": "ツナ缶", "quantity": 3, "unit": "缶", "category": "main"}
        with patch.object(api_ai, "identify_item_from_image", return_value=identified):
            resp = self.client.post('/api/scan', files={'image': ('tuna.jpg', b'\xff\xd8\xff', 'image/jpeg')})
        self.assertEqual(resp.status_code, 200)
        draft = resp.json()['draft']
        self.assertEqual(draft['name'], 'ツナ缶')
        self.assertEqual(draft['quantity'], 3)
        self.assertEqual(draft['max_quantity'], 5)
        self.assertTrue(draft['is_rolling_stock'])
        self.assertNotIn('id', draft)

    def test_scan_rejects_non_images(self):
        resp = self.client.post('/api/scan', files={'image': ('notes.txt', b'hello', 'text/plain')})
        self.assertEqual(resp.status_code, 415)

    def test_scan_rejects_oversized_upload(self):
        with patch.object(ai_routes, "MAX_IMAGE_BYTES", 4), \
                patch.object(api_ai, "identify_item_from_image") as identify:
            resp = self.client.post('/api/scan', files={'image': ('big.jpg', b'\xff\xd8\xff\x00\x01\x02', 'image/jpeg')})
        self.assertEqual(resp.status_code, 413)
        identify.assert_not_called()

    def test_scan_without_ai(self):
        with patch.object(api_ai, "identify_item_from_image", side_effect=AIUnavailableError("OPENAI_API_KEY not set")):
            resp = self.client.post('/api/scan', files={'image': ('tuna.jpg', b'\xff\xd8\xff', 'image/jpeg')})
        self.assertEqual(resp.status_code, 503)

    def test_advisor_falls_back(self):
        with patch.object(api_ai, "_get_openai_client", return_value=None):
            resp = self.client.post('/api/advisor', json={'is_emergency': True})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]['title'], 'エラー')

    def test_emergency_actions_fall_back(self):
        with patch.object(api_ai, "_get_openai_client", return_value=None):
            resp = self.client.post('/api/emergency-actions')
        self.assertEqual(resp.status_code, 200)
        self.assertGreaterEqual(len(resp.json()['actions']), 2)
