"""
Shared pytest fixtures for season bracket tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Player
from brackets.seasons import SeasonManager
from brackets.storage import FileStore

ADMIN_KEY = 'test-admin-key'


@pytest.fixture
def four_players():
    """Four unseeded players in roster order."""
    return [Player('A'), Player('B'), Player('C'), Player('D')]


@pytest.fixture
def eight_players():
    """Eight players, seeded 1-8 in roster order."""
    names = ['Ann', 'Bob', 'Cid', 'Dee', 'Eve', 'Fay', 'Gus', 'Hal']
    return [Player(name, seed=i + 1) for i, name in enumerate(names)]


@pytest.fixture
def file_store(tmp_path):
    """FileStore in a temporary data directory."""
    return FileStore(str(tmp_path / 'data'))


@pytest.fixture
def manager(file_store):
    """SeasonManager over a temporary FileStore."""
    return SeasonManager(file_store)


@pytest.fixture
def season_with_players(manager, eight_players):
    """A season named 2024 whose roster holds the eight players."""
    manager.add_season('2024')
    for player in eight_players:
        manager.add_participant('2024', player.name, player.seed)
    return '2024'


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app at a temporary data directory and admin key."""
    import app as app_module

    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'STORAGE_BACKEND', 'file')
    monkeypatch.setattr(app_module, '_store', None)
    monkeypatch.setattr(app_module, '_data_lock', None)
    monkeypatch.setenv('ADMIN_API_KEY', ADMIN_KEY)
    return data_dir


@pytest.fixture
def client(temp_data_dir):
    """Create a Flask test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {ADMIN_KEY}'}
