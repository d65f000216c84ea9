"""
Tests for the file and SQL storage backends.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.seasons import SeasonManager
from brackets.storage import FileStore, create_store, _slugify
from brackets.sql_store import SqlStore


@pytest.fixture(params=['file', 'sql'])
def store(request, tmp_path):
    """Each backend in turn."""
    if request.param == 'file':
        return FileStore(str(tmp_path / 'data'))
    return SqlStore('sqlite://')


def run_season(store):
    """Drive a season through a typical sequence and return what a client sees."""
    manager = SeasonManager(store)
    manager.add_season('2024')
    manager.add_season('2025')
    manager.save_season_meta('2024', '2024-05', '2024-06')
    for i, name in enumerate(['Ann', 'Bob', 'Cid', 'Dee', 'Eve', 'Fay', 'Gus', 'Hal']):
        manager.add_participant('2024', name, seed=8 - i)
    manager.add_season_moderator('2024', 'Mo')
    manager.add_global_participant('Ann', seed=1)
    manager.add_global_moderator('Mo')
    for number, winner in [(1, 'Bob'), (2, 'Cid'), (3, 'Eve'), (4, 'Gus')]:
        manager.set_winner('2024', 'Round 1', number, winner)
    manager.set_winner('2024', 'Quarterfinals', 2, 'Gus')
    return {
        'seasons': manager.list_seasons(),
        'meta': manager.get_season_meta('2024'),
        'participants': manager.list_participants('2024'),
        'moderators': manager.list_season_moderators('2024'),
        'global_participants': manager.list_global_participants(),
        'global_moderators': manager.list_global_moderators(),
        'bracket': manager.get_bracket('2024'),
        'empty_bracket': manager.get_bracket('2025'),
    }


class TestStoreContract:
    """Behavior every backend must share."""

    def test_empty_store(self, store):
        assert store.list_seasons() == []
        assert store.get_bracket('2024') is None
        assert store.get_season_meta('2024') == {}
        assert store.get_participants('2024') == []
        assert store.get_season_moderators('2024') == []
        assert store.get_global_participants() == []
        assert store.get_global_moderators() == []

    def test_bracket_round_trip(self, store):
        bracket = {
            'Round 1': [
                {'matchNumber': 1, 'player1': {'name': 'A', 'seed': 1}, 'player2': {'name': 'B'}, 'winner': 'A'},
                {'matchNumber': 2, 'player1': {'name': 'C'}, 'player2': {'name': 'D'}},
            ],
            'Quarterfinals': [
                {'matchNumber': 1, 'player1': {'name': 'A'}, 'player2': {'name': ''}},
            ],
        }
        store.save_bracket('2024', bracket)
        assert store.get_bracket('2024') == bracket

    def test_save_replaces_whole_value(self, store):
        store.save_participants('2024', [{'name': 'A'}, {'name': 'B'}])
        store.save_participants('2024', [{'name': 'C', 'seed': 4}])
        assert store.get_participants('2024') == [{'name': 'C', 'seed': 4}]

    def test_season_list_order_kept(self, store):
        store.save_seasons(['2025', '2023', '2024'])
        assert store.list_seasons() == ['2025', '2023', '2024']
        store.save_seasons(['2025'])
        assert store.list_seasons() == ['2025']

    def test_full_scenario(self, store):
        seen = run_season(store)
        assert seen['seasons'] == ['2025', '2024']
        assert seen['meta'] == {'month1': '2024-05', 'month2': '2024-06'}
        assert seen['participants'][0] == {'name': 'Ann', 'seed': 8}
        qf = seen['bracket']['Quarterfinals']
        assert [(m['player1']['name'], m['player2']['name']) for m in qf] == [('Bob', 'Cid'), ('Eve', 'Gus')]
        assert qf[1]['winner'] == 'Gus'


class TestBackendEquivalence:
    """The file and SQL backends must be indistinguishable to callers."""

    def test_same_results(self, tmp_path):
        from_files = run_season(FileStore(str(tmp_path / 'data')))
        from_sql = run_season(SqlStore('sqlite://'))
        assert from_files == from_sql


class TestFileStore:
    """FileStore specifics."""

    def test_layout(self, tmp_path):
        store = FileStore(str(tmp_path))
        store.save_seasons(['Spring 2024'])
        store.save_bracket('Spring 2024', {})
        store.save_participants('Spring 2024', [{'name': 'A'}])
        assert (tmp_path / 'seasons.yaml').exists()
        assert (tmp_path / 'seasons' / 'spring-2024.yaml').exists()
        assert (tmp_path / 'seasons' / 'spring-2024-participants.yaml').exists()

    def test_corrupt_file_reads_as_empty(self, tmp_path, caplog):
        store = FileStore(str(tmp_path))
        (tmp_path / 'participants.yaml').write_text('- name: [unclosed\n')
        assert store.get_global_participants() == []
        assert 'Failed to parse' in caplog.text

    def test_wrong_shape_reads_as_empty(self, tmp_path):
        store = FileStore(str(tmp_path))
        (tmp_path / 'seasons.yaml').write_text('not: a list\n')
        assert store.list_seasons() == []

    def test_delete_season_keeps_files(self, tmp_path):
        store = FileStore(str(tmp_path))
        store.save_bracket('2024', {'Round 1': []})
        store.delete_season('2024')
        assert store.get_bracket('2024') == {'Round 1': []}

    def test_slugify(self):
        assert _slugify('Spring 2024') == 'spring-2024'
        assert _slugify('../etc/passwd') == 'etcpasswd'
        assert _slugify('***') == 'season'


class TestSqlStore:
    """SqlStore specifics."""

    def test_delete_season_removes_rows(self):
        store = SqlStore('sqlite://')
        store.save_seasons(['2024'])
        store.save_bracket('2024', {'Round 1': [
            {'matchNumber': 1, 'player1': {'name': 'A'}, 'player2': {'name': 'B'}}]})
        store.save_participants('2024', [{'name': 'A'}, {'name': 'B'}])
        store.delete_season('2024')
        assert store.list_seasons() == []
        assert store.get_bracket('2024') is None
        assert store.get_participants('2024') == []

    def test_unlisted_season_keeps_data(self):
        store = SqlStore('sqlite://')
        store.save_seasons(['2024'])
        store.save_participants('2024', [{'name': 'A'}])
        store.save_seasons([])
        assert store.get_participants('2024') == [{'name': 'A'}]

    def test_file_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'brackets.db'}"
        SqlStore(url).save_seasons(['2024'])
        assert SqlStore(url).list_seasons() == ['2024']


class TestCreateStore:
    """Tests for backend selection."""

    def test_file_backend(self, tmp_path):
        store = create_store('file', str(tmp_path))
        assert isinstance(store, FileStore)

    def test_sql_backend_default_url(self, tmp_path):
        store = create_store('SQL', str(tmp_path / 'data'))
        assert isinstance(store, SqlStore)
        assert (tmp_path / 'data' / 'brackets.db').exists()

    def test_sql_backend_explicit_url(self, tmp_path):
        store = create_store('sql', str(tmp_path), 'sqlite://')
        assert isinstance(store, SqlStore)

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError):
            create_store('mongo', str(tmp_path))
