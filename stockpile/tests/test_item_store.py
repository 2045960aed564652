import unittest
from stockpile.domain.InventoryItem import InventoryItem
from stockpile.domain.ItemStore import ItemStore
from stockpile.domain.errors import ItemNotFoundError
from stockpile.events.Event_Bus import (
    EventBus, INVENTORY_CHANGED, SHOPPING_ENTRY_ADDED, SHOPPING_ENTRY_REMOVED,
    SHOPPING_ENTRY_TOGGLED
)


class TestItemStore(unittest.TestCase):

    def setUp(self):
        self.bus = EventBus()
        self.events = []
        for name in (INVENTORY_CHANGED, SHOPPING_ENTRY_ADDED, SHOPPING_ENTRY_REMOVED, SHOPPING_ENTRY_TOGGLED):
            self.bus.subscribe(name, lambda event_name, payload: self.events.append(event_name))
        self.store = ItemStore(event_bus=self.bus)
        self.water = InventoryItem("保存水", 6, 12, unit="本", is_rolling_stock=True, id="water")
        self.result = self.store.add_item(self.water)

    def test_add_item_reconciles(self):
        entries = self.store.get_shopping_list()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].quantity, 6)
        self.assertEqual(len(self.result.enrichment_requests), 1)
        self.assertEqual(self.events, [INVENTORY_CHANGED, SHOPPING_ENTRY_ADDED])

    def test_filling_stock_removes_entry(self):
        result = self.store.update_quantity("water", 6)
        self.assertEqual(self.store.get_shopping_list(), [])
        self.assertEqual(len(result.diff.removed), 1)
        self.assertIn(SHOPPING_ENTRY_REMOVED, self.events)

    def test_quantity_never_goes_negative(self):
        self.store.update_quantity("water", -100)
        self.assertEqual(self.store.get_item("water").quantity, 0)
        self.assertEqual(self.store.get_shopping_list()[0].quantity, 12)

    def test_checked_entry_survives_and_blocks_duplicate(self):
        entry = self.store.get_shopping_list()[0]
        self.store.toggle_shopping_entry(entry.id)
        self.store.set_quantity("water", 12)
        self.store.set_quantity("water", 6)
        entries = self.store.get_shopping_list()
        self.assertEqual(len(entries), 1)
        self.assertTrue(entries[0].checked)
        self.assertEqual(entries[0].id, entry.id)

    def test_clear_checked_allows_new_entry(self):
        entry = self.store.get_shopping_list()[0]
        self.store.toggle_shopping_entry(entry.id)
        cleared = self.store.clear_checked()
        self.assertEqual([e.id for e in cleared], [entry.id])
        self.assertEqual(self.store.get_shopping_list(), [])
        result = self.store.reconcile_now()
        self.assertEqual(len(self.store.get_shopping_list()), 1)
        self.assertNotEqual(self.store.get_shopping_list()[0].id, entry.id)
        self.assertEqual(len(result.enrichment_requests), 1)

    def test_repeated_pass_writes_nothing(self):
        revision = self.store.revision
        before = self.store.get_shopping_list()
        result = self.store.reconcile_now()
        self.assertEqual(self.store.revision, revision)
        self.assertFalse(result.diff.changed)
        self.assertEqual(self.store.get_shopping_list(), before)

    def test_shopping_writes_do_not_reconcile(self):
        entry = self.store.get_shopping_list()[0]
        self.store.toggle_shopping_entry(entry.id)
        self.store.toggle_shopping_entry(entry.id)
        # unchecking brings the entry back under reconciliation only at the next inventory change
        self.assertEqual(self.events.count(INVENTORY_CHANGED), 1)
        self.assertEqual(self.events.count(SHOPPING_ENTRY_TOGGLED), 2)

    def test_nested_mutation_is_refused(self):
        def sneaky(current):
            self.store.add_item(InventoryItem("乾パン", 1))
            return current
        with self.assertRaises(RuntimeError):
            self.store.apply_inventory_mutation(sneaky)
        self.assertEqual([i.name for i in self.store.get_inventory()], ["保存水"])
        # the guard is released afterwards
        self.store.add_item(InventoryItem("乾パン", 1))
        self.assertEqual(len(self.store.get_inventory()), 2)

    def test_disabling_rolling_stock_leaves_entry(self):
        self.store.toggle_rolling_stock("water")
        self.store.update_quantity("water", 6)
        self.assertEqual(len(self.store.get_shopping_list()), 1)

    def test_update_item_target(self):
        result = self.store.update_item("water", max_quantity=8)
        self.assertEqual(self.store.get_shopping_list()[0].quantity, 2)
        self.assertEqual(len(result.diff.updated), 1)

    def test_unknown_ids(self):
        with self.assertRaises(ItemNotFoundError):
            self.store.remove_item("missing")
        with self.assertRaises(ItemNotFoundError):
            self.store.update_quantity("missing", 1)
        with self.assertRaises(ItemNotFoundError):
            self.store.toggle_shopping_entry("missing")

    def test_remove_item(self):
        self.store.remove_item("water")
        self.assertEqual(self.store.get_inventory(), [])


class TestEventBus(unittest.TestCase):

    def test_failing_subscriber_does_not_block_others(self):
        bus = EventBus()
        received = []

        def broken(event_name, payload):
            raise RuntimeError("boom")

        bus.subscribe("x", broken)
        bus.subscribe("x", lambda event_name, payload: received.append(payload))
        with self.assertLogs("stockpile.events.Event_Bus", level="ERROR"):
            bus.publish("x", 1)
        self.assertEqual(received, [1])

    def test_subscribe_is_idempotent(self):
        bus = EventBus()
        received = []
        cb = lambda event_name, payload: received.append(payload)
        bus.subscribe("x", cb)
        bus.subscribe("x", cb)
        bus.publish("x", 1)
        bus.unsubscribe("x", cb)
        bus.publish("x", 2)
        self.assertEqual(received, [1])
