#!/usr/bin/env python3
"""
Command line access to season brackets stored on disk.

Usage:
    python src/main.py seasons
    python src/main.py show <season>
    python src/main.py seed <season> [--by-seed]
    python src/main.py winner <season> <round> <match> [name]

Exit codes:
    0: Success
    1: Operation rejected or season not found
"""
import argparse
import os
import sys

from filelock import FileLock

from brackets.elimination import ROUND_ORDER, get_bracket_display
from brackets.seasons import SeasonManager
from brackets.storage import FileStore


def default_data_dir():
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.environ.get('BRACKET_DATA_DIR', os.path.join(base_dir, 'data'))


def format_bracket(bracket):
    """Render a bracket as indented text, one match per line."""
    display = get_bracket_display(bracket)
    lines = []
    for round_name in ROUND_ORDER:
        matches = display['rounds'][round_name]
        if not matches:
            continue
        lines.append(f"{round_name}:")
        for match in matches:
            p1 = match['player1'].get('name') or 'TBD'
            p2 = match['player2'].get('name') or 'TBD'
            winner = match.get('winner')
            suffix = f"  -> {winner}" if winner else ''
            lines.append(f"  {match['matchNumber']}. {p1} vs {p2}{suffix}")
    if display['champion']:
        lines.append(f"Champion: {display['champion']}")
    if not lines:
        lines.append("No matches yet.")
    return '\n'.join(lines)


def build_parser():
    parser = argparse.ArgumentParser(description='Inspect and edit season brackets')
    parser.add_argument('--data-dir', default=default_data_dir(), help='Directory holding the bracket files')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('seasons', help='List seasons')

    show = sub.add_parser('show', help='Print a season bracket')
    show.add_argument('season')

    seed = sub.add_parser('seed', help='Rebuild Round 1 from the season roster')
    seed.add_argument('season')
    seed.add_argument('--by-seed', action='store_true', help='Pair 1 vs N, 2 vs N-1, ... instead of roster order')

    winner = sub.add_parser('winner', help='Set, toggle or clear a match winner')
    winner.add_argument('season')
    winner.add_argument('round', help='Round name or number (1-4)')
    winner.add_argument('match', type=int, help='Match number within the round')
    winner.add_argument('name', nargs='?', default=None, help='Winner name; omit to clear')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    manager = SeasonManager(FileStore(args.data_dir))

    if args.command == 'seasons':
        for season in manager.list_seasons():
            print(season)
        return 0

    if not manager.season_exists(args.season):
        print(f"Error: season '{args.season}' not found", file=sys.stderr)
        return 1

    if args.command in ('seed', 'winner'):
        manager = SeasonManager(manager.store, lock=FileLock(os.path.join(args.data_dir, '.lock'), timeout=10))

    if args.command == 'seed':
        success, message = manager.regenerate_bracket(args.season, 'seed' if args.by_seed else 'added')
    elif args.command == 'winner':
        success, message = manager.set_winner(args.season, args.round, args.match, args.name)
    else:
        success, message = True, None

    if not success:
        print(f"Error: {message}", file=sys.stderr)
        return 1
    if message:
        print(message)
    print(format_bracket(manager.get_bracket(args.season)))
    return 0


if __name__ == '__main__':
    sys.exit(main())
