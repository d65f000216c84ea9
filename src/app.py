"""
Flask web application for Season Brackets.
"""
import os
import hmac
from functools import wraps
from filelock import FileLock
from flask import Flask, request, jsonify
from brackets.elimination import get_bracket_display
from brackets.seasons import SeasonManager
from brackets.storage import create_store

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
STORAGE_BACKEND = os.environ.get('BRACKET_STORAGE', 'file')
DATABASE_URL = os.environ.get('DATABASE_URL')

_store = None
_data_lock = None


def get_manager() -> SeasonManager:
    """Build the season manager over the configured store (created on first use)."""
    global _store, _data_lock
    if _store is None:
        _store = create_store(STORAGE_BACKEND, DATA_DIR, DATABASE_URL)
        app.logger.info(f'Using {STORAGE_BACKEND} storage: {_store!r}')
    if _data_lock is None:
        os.makedirs(DATA_DIR, exist_ok=True)
        _data_lock = FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)
    return SeasonManager(_store, lock=_data_lock)


def require_admin_key(f):
    """Gate season, roster and winner edits behind ADMIN_API_KEY."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin_key = os.environ.get('ADMIN_API_KEY')
        if not admin_key:
            app.logger.error('ADMIN_API_KEY is unset; bracket edits are disabled')
            return jsonify({'error': 'Bracket editing is disabled: ADMIN_API_KEY is not set'}), 500

        scheme, _, supplied = request.headers.get('Authorization', '').partition(' ')
        if scheme != 'Bearer' or not supplied:
            return jsonify({'error': 'Bracket edits need an "Authorization: Bearer <admin key>" header'}), 401
        if not hmac.compare_digest(admin_key, supplied):
            app.logger.warning(f'Admin key rejected for {request.method} {request.path}')
            return jsonify({'error': 'Admin key rejected'}), 401

        return f(*args, **kwargs)
    return decorated_function


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _seed(value):
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _name_from_body(data: dict):
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()


def _result(outcome: tuple):
    """Turn a (success, message) tuple into a JSON response."""
    success, message = outcome
    if not success:
        app.logger.warning(f'Rejected {request.method} {request.path}: {message}')
        return jsonify({'error': message}), 400
    return jsonify({'ok': True, 'message': message})


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    """Log unexpected failures and report them as JSON."""
    from werkzeug.exceptions import HTTPException
    if isinstance(e, HTTPException):
        return jsonify({'error': e.description}), e.code
    app.logger.error(f'Unhandled error on {request.method} {request.path}: {e}', exc_info=True)
    return jsonify({'error': 'Internal server error'}), 500


# ----------------------------------------------------------------------
# Public routes
# ----------------------------------------------------------------------

@app.route('/api/seasons', methods=['GET'])
def api_seasons():
    return jsonify(get_manager().list_seasons())


@app.route('/api/seasons/<season>', methods=['GET'])
def api_season_meta(season):
    return jsonify(get_manager().get_season_meta(season))


@app.route('/api/seasons/<season>/bracket', methods=['GET'])
def api_season_bracket(season):
    """Return the season's bracket; 404 with an empty object if there is none."""
    bracket = get_manager().get_bracket(season)
    if not bracket or not any(bracket.values()):
        return jsonify({}), 404
    return jsonify(bracket)


@app.route('/api/seasons/<season>/summary', methods=['GET'])
def api_season_summary(season):
    bracket = get_manager().get_bracket(season)
    if bracket is None:
        return jsonify({'error': 'Season not found'}), 404
    return jsonify(get_bracket_display(bracket))


# ----------------------------------------------------------------------
# Admin: seasons
# ----------------------------------------------------------------------

@app.route('/api/admin/seasons', methods=['POST', 'DELETE'])
@require_admin_key
def api_admin_seasons():
    data = _json_body()
    season = data.get('season')
    if not isinstance(season, str) or not season.strip():
        return jsonify({'error': 'season required'}), 400
    manager = get_manager()
    if request.method == 'POST':
        outcome = manager.add_season(season)
    else:
        outcome = manager.remove_season(season)
    app.logger.info(f'{request.method} season {season}: {outcome[1]}')
    return _result(outcome)


@app.route('/api/admin/seasons/<season>', methods=['PUT'])
@require_admin_key
def api_admin_season_meta(season):
    data = _json_body()
    return _result(get_manager().save_season_meta(season, data.get('month1'), data.get('month2')))


# ----------------------------------------------------------------------
# Admin: global roster and moderators
# ----------------------------------------------------------------------

@app.route('/api/admin/participants', methods=['GET', 'POST', 'DELETE'])
@require_admin_key
def api_admin_participants():
    manager = get_manager()
    if request.method == 'GET':
        return jsonify(manager.list_global_participants())
    data = _json_body()
    name = _name_from_body(data)
    if not name:
        return jsonify({'error': 'name required'}), 400
    if request.method == 'POST':
        seed = data.get('seed')
        return _result(manager.add_global_participant(name, _seed(seed)))
    return _result(manager.remove_global_participant(name))


@app.route('/api/admin/moderators', methods=['GET', 'POST', 'DELETE'])
@require_admin_key
def api_admin_moderators():
    manager = get_manager()
    if request.method == 'GET':
        return jsonify(manager.list_global_moderators())
    name = _name_from_body(_json_body())
    if not name:
        return jsonify({'error': 'name required'}), 400
    if request.method == 'POST':
        return _result(manager.add_global_moderator(name))
    return _result(manager.remove_global_moderator(name))


# ----------------------------------------------------------------------
# Admin: season roster, moderators and matches
# ----------------------------------------------------------------------

@app.route('/api/admin/seasons/<season>/participants', methods=['GET', 'POST', 'DELETE', 'PUT'])
@require_admin_key
def api_admin_season_participants(season):
    manager = get_manager()
    if request.method == 'GET':
        return jsonify(manager.list_participants(season))
    data = _json_body()
    if request.method == 'PUT':
        outcome = manager.regenerate_bracket(season, data.get('order', 'added'))
        app.logger.info(f'Regenerated bracket for {season}: {outcome[1]}')
        return _result(outcome)
    name = _name_from_body(data)
    if not name:
        return jsonify({'error': 'name required'}), 400
    if request.method == 'POST':
        seed = data.get('seed')
        return _result(manager.add_participant(season, name, _seed(seed)))
    return _result(manager.remove_participant(season, name))


@app.route('/api/admin/seasons/<season>/moderators', methods=['GET', 'POST', 'DELETE'])
@require_admin_key
def api_admin_season_moderators(season):
    manager = get_manager()
    if request.method == 'GET':
        return jsonify(manager.list_season_moderators(season))
    name = _name_from_body(_json_body())
    if not name:
        return jsonify({'error': 'name required'}), 400
    if request.method == 'POST':
        return _result(manager.add_season_moderator(season, name))
    return _result(manager.remove_season_moderator(season, name))


@app.route('/api/admin/seasons/<season>/matches', methods=['PUT'])
@require_admin_key
def api_admin_season_matches(season):
    """Set or clear the winner for a given round and match number."""
    data = _json_body()
    round_ref = data.get('round')
    match_number = data.get('matchNumber')
    if not round_ref or not match_number:
        return jsonify({'error': 'round, matchNumber required'}), 400
    try:
        match_number = int(match_number)
    except (TypeError, ValueError):
        return jsonify({'error': 'matchNumber must be a number'}), 400
    winner = data.get('winner')
    if winner is not None and not isinstance(winner, str):
        return jsonify({'error': 'winner must be a name or null'}), 400

    outcome = get_manager().set_winner(season, round_ref, match_number, winner)
    app.logger.info(f'Set winner {season} {round_ref} #{match_number} -> {winner!r}: {outcome[1]}')
    return _result(outcome)


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
