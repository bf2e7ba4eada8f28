"""Unit tests for key-value preference stores."""
import json

from storage.preferences import InMemoryKeyValueStore, JsonFileKeyValueStore


def test_in_memory_store():
    store = InMemoryKeyValueStore({'festivalEnabled': 'false'})

    assert store.get('festivalEnabled') == 'false'
    assert store.get('festivalBadgeDismissed') is None

    store.set('festivalBadgeDismissed', 'easter')

    assert store.get('festivalBadgeDismissed') == 'easter'


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / 'prefs.json'

    JsonFileKeyValueStore(str(path)).set('festivalBadgeDismissed', 'diwali')
    store = JsonFileKeyValueStore(str(path))

    assert store.get('festivalBadgeDismissed') == 'diwali'
    assert json.loads(path.read_text(encoding='utf-8')) == {'festivalBadgeDismissed': 'diwali'}


def test_json_file_store_missing_file(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path / 'missing.json'))

    assert store.get('festivalEnabled') is None


def test_json_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / 'prefs.json'
    path.write_text('not json', encoding='utf-8')
    store = JsonFileKeyValueStore(str(path))

    assert store.get('festivalEnabled') is None

    store.set('festivalEnabled', 'true')

    assert store.get('festivalEnabled') == 'true'


def test_json_file_store_ignores_non_string_values(tmp_path):
    path = tmp_path / 'prefs.json'
    path.write_text('{"festivalEnabled": false}', encoding='utf-8')

    assert JsonFileKeyValueStore(str(path)).get('festivalEnabled') is None
