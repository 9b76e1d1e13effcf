"""
Unit tests for RollStorage.
"""

import pytest
from roll_enhancements.core.storage import RollStorage
from roll_enhancements.core.models import ChatMessage, Event


@pytest.fixture
def storage():
    """Create an in-memory storage for testing."""
    storage = RollStorage(':memory:')
    storage.initialize()
    yield storage
    storage.close()


class TestSettings:
    """Test the settings table."""

    def test_missing_setting(self, storage):
        assert storage.get_setting('autoDamage') is None

    def test_set_and_get(self, storage):
        """Test that values round-trip through JSON."""
        storage.set_setting('autoDamage', False)
        storage.set_setting('rollMode', 'gmroll')
        assert storage.get_setting('autoDamage') is False
        assert storage.get_setting('rollMode') == 'gmroll'

    def test_overwrite(self, storage):
        storage.set_setting('rollMode', 'gmroll')
        storage.set_setting('rollMode', 'selfroll')
        assert storage.list_settings() == {'rollMode': 'selfroll'}


class TestItems:
    """Test item documents."""

    def test_save_and_get(self, storage):
        assert storage.save_item('item_1', 'Longsword', {'id': 'item_1', 'name': 'Longsword'})
        assert storage.get_item('item_1') == {'id': 'item_1', 'name': 'Longsword'}

    def test_get_missing(self, storage):
        assert storage.get_item('nope') is None

    def test_update_replaces(self, storage):
        storage.save_item('item_1', 'Longsword', {'v': 1})
        storage.save_item('item_1', 'Longsword', {'v': 2})
        assert storage.get_item('item_1') == {'v': 2}
        assert len(storage.list_items()) == 1

    def test_list_ordered_by_name(self, storage):
        storage.save_item('b', 'Warhammer', {'name': 'Warhammer'})
        storage.save_item('a', 'Dagger', {'name': 'Dagger'})
        assert [i['name'] for i in storage.list_items()] == ['Dagger', 'Warhammer']


class TestMessages:
    """Test the chat log."""

    def test_save_and_get(self, storage):
        message = ChatMessage.create({'user': 'player1', 'content': '<p>hi</p>', 'flavor': 'Hello'})
        storage.save_message(message)

        loaded = storage.get_message(message.id)
        assert loaded.user == 'player1'
        assert loaded.content == '<p>hi</p>'
        assert loaded.flavor == 'Hello'

    def test_list_oldest_first_with_limit(self, storage):
        """Test that the limit keeps the newest messages, oldest first."""
        for i in range(5):
            storage.save_message(ChatMessage.create({'flavor': f'm{i}'}))

        assert [m.flavor for m in storage.list_messages(3)] == ['m2', 'm3', 'm4']
        assert storage.count_messages() == 5


class TestEvents:
    """Test the event log."""

    def test_log_and_filter(self, storage):
        storage.log_event(Event.create('roll.completed', {'total': 3}, item_id='item_1'))
        storage.log_event(Event.create('message.created', {'message_id': 'm'}))

        rolls = storage.get_events(event_type='roll.completed')
        assert len(rolls) == 1
        assert rolls[0].data == {'total': 3}
        assert len(storage.get_events(item_id='item_1')) == 1
        assert len(storage.get_events()) == 2

    def test_most_recent_first(self, storage):
        storage.log_event(Event.create('test.event', {'n': 1}))
        storage.log_event(Event.create('test.event', {'n': 2}))
        assert [e.data['n'] for e in storage.get_events()] == [2, 1]
