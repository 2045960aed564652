from datetime import date
import unittest
from stockpile.domain.InventoryItem import InventoryItem, parse_date, to_non_negative_int
from stockpile.domain.ShoppingEntry import ShoppingEntry


class TestInventoryItem(unittest.TestCase):

    def test_negative_quantity_is_clamped(self):
        item = InventoryItem("ツナ缶", -4, 6)
        self.assertEqual(item.quantity, 0)

    def test_adjusted_clamps_at_zero_and_keeps_identity(self):
        item = InventoryItem("ツナ缶", 3, 6, id="tuna")
        lower = item.adjusted(-10)
        self.assertEqual(lower.quantity, 0)
        self.assertEqual(lower.id, "tuna")
        self.assertEqual(item.quantity, 3)

    def test_deficit_defaults_missing_target_to_zero(self):
        self.assertEqual(InventoryItem("水", 0, None, is_rolling_stock=True).deficit, 0)
        self.assertEqual(InventoryItem("水", 6, 12, is_rolling_stock=True).deficit, 6)
        self.assertEqual(InventoryItem("水", 15, 12, is_rolling_stock=True).deficit, 0)

    def test_updated_rejects_unknown_fields_and_id_change(self):
        item = InventoryItem("水", 1)
        with self.assertRaises(ValueError):
            item.updated(colour="blue")
        with self.assertRaises(ValueError):
            item.updated(id="other")

    def test_emergency_safe(self):
        self.assertTrue(InventoryItem("ツナ缶").is_emergency_safe)
        self.assertFalse(InventoryItem("アルファ米", requires_fire=True, requires_water=True).is_emergency_safe)
        self.assertTrue(InventoryItem("水", category="water", requires_water=True).is_emergency_safe)

    def test_from_dict_coerces_bad_values(self):
        item = InventoryItem.from_dict({
            "name": "乾パン", "quantity": "abc", "max_quantity": "4",
            "expiry_date": "not a date", "category": "snacks", "location": "garage",
            "unknown": 1,
        })
        self.assertEqual(item.quantity, 0)
        self.assertEqual(item.max_quantity, 4)
        self.assertIsNone(item.expiry_date)
        self.assertEqual(item.category, "other")
        self.assertEqual(item.location, "pantry")

    def test_dict_round_trip(self):
        item = InventoryItem("保存水", 6, 12, unit="本", expiry_date="2027-05-10",
                             category="water", is_rolling_stock=True)
        data = item.to_dict()
        self.assertEqual(data["expiry_date"], "2027-05-10")
        self.assertEqual(InventoryItem.from_dict(data), item)

    def test_helpers(self):
        self.assertEqual(to_non_negative_int("7"), 7)
        self.assertEqual(to_non_negative_int(2.9), 2)
        self.assertEqual(to_non_negative_int(None, default=1), 1)
        self.assertEqual(to_non_negative_int(True), 0)
        self.assertEqual(parse_date("2026-02-03"), date(2026, 2, 3))
        self.assertIsNone(parse_date("03-02-2026"))


class TestShoppingEntry(unittest.TestCase):

    def test_search_url_prefers_query(self):
        entry = ShoppingEntry("保存水", 6)
        self.assertIn("amazon.co.jp", entry.search_url)
        with_query = entry.replace(search_query="保存水 2L 12本")
        self.assertTrue(with_query.search_url.endswith("%202L%2012%E6%9C%AC"))
        self.assertEqual(with_query.id, entry.id)

    def test_unknown_enrichment_state_rejected(self):
        with self.assertRaises(ValueError):
            ShoppingEntry("水", 1, enrichment="loading")
