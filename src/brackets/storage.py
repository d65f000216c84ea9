"""
Persistence for seasons, rosters, moderators and brackets.

Stores only read and write whole values; the rules live in SeasonManager.
"""
import os
import re
import logging
import yaml

logger = logging.getLogger(__name__)


class BracketStore:
    """Persistence contract shared by the file and SQL backends."""

    def list_seasons(self) -> list:
        raise NotImplementedError

    def save_seasons(self, seasons: list):
        raise NotImplementedError

    def delete_season(self, season: str):
        raise NotImplementedError

    def get_bracket(self, season: str):
        raise NotImplementedError

    def save_bracket(self, season: str, bracket: dict):
        raise NotImplementedError

    def get_season_meta(self, season: str) -> dict:
        raise NotImplementedError

    def save_season_meta(self, season: str, meta: dict):
        raise NotImplementedError

    def get_participants(self, season: str) -> list:
        raise NotImplementedError

    def save_participants(self, season: str, participants: list):
        raise NotImplementedError

    def get_season_moderators(self, season: str) -> list:
        raise NotImplementedError

    def save_season_moderators(self, season: str, moderators: list):
        raise NotImplementedError

    def get_global_participants(self) -> list:
        raise NotImplementedError

    def save_global_participants(self, participants: list):
        raise NotImplementedError

    def get_global_moderators(self) -> list:
        raise NotImplementedError

    def save_global_moderators(self, moderators: list):
        raise NotImplementedError


def _slugify(name: str) -> str:
    """Convert a season name to a filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s._-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = slug.strip('-.')
    return slug or 'season'


class FileStore(BracketStore):
    """YAML files under a data directory, one file per value."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.seasons_dir = os.path.join(data_dir, 'seasons')

    def _season_file(self, season: str, suffix: str = '') -> str:
        return os.path.join(self.seasons_dir, f'{_slugify(season)}{suffix}.yaml')

    def _load(self, path: str, default):
        if not os.path.exists(path):
            return default
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except Exception as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return default
        if data is None or not isinstance(data, type(default)):
            return default
        return data

    def _save(self, path: str, data):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def list_seasons(self) -> list:
        return self._load(os.path.join(self.data_dir, 'seasons.yaml'), [])

    def save_seasons(self, seasons: list):
        self._save(os.path.join(self.data_dir, 'seasons.yaml'), list(seasons))

    def delete_season(self, season: str):
        # Season files stay on disk so a removed season can be recovered.
        pass

    def get_bracket(self, season: str):
        path = self._season_file(season)
        if not os.path.exists(path):
            return None
        return self._load(path, {})

    def save_bracket(self, season: str, bracket: dict):
        self._save(self._season_file(season), bracket)

    def get_season_meta(self, season: str) -> dict:
        return self._load(self._season_file(season, '-meta'), {})

    def save_season_meta(self, season: str, meta: dict):
        self._save(self._season_file(season, '-meta'), meta)

    def get_participants(self, season: str) -> list:
        return self._load(self._season_file(season, '-participants'), [])

    def save_participants(self, season: str, participants: list):
        self._save(self._season_file(season, '-participants'), participants)

    def get_season_moderators(self, season: str) -> list:
        return self._load(self._season_file(season, '-moderators'), [])

    def save_season_moderators(self, season: str, moderators: list):
        self._save(self._season_file(season, '-moderators'), moderators)

    def get_global_participants(self) -> list:
        return self._load(os.path.join(self.data_dir, 'participants.yaml'), [])

    def save_global_participants(self, participants: list):
        self._save(os.path.join(self.data_dir, 'participants.yaml'), participants)

    def get_global_moderators(self) -> list:
        return self._load(os.path.join(self.data_dir, 'moderators.yaml'), [])

    def save_global_moderators(self, moderators: list):
        self._save(os.path.join(self.data_dir, 'moderators.yaml'), moderators)

    def __repr__(self):
        return f"FileStore(data_dir={self.data_dir})"


def create_store(backend: str, data_dir: str, database_url: str = None) -> BracketStore:
    """Build the store named by backend ('file' or 'sql')."""
    backend = (backend or 'file').strip().lower()
    if backend == 'file':
        return FileStore(data_dir)
    if backend == 'sql':
        from .sql_store import SqlStore
        if not database_url:
            os.makedirs(data_dir, exist_ok=True)
        url = database_url or f"sqlite:///{os.path.join(data_dir, 'brackets.db')}"
        return SqlStore(url)
    raise ValueError(f'Unknown storage backend: {backend}')
