import argparse
import datetime
import sys

from .logging_config import setup_logging
from .models import MATCH_TYPES
from .services.exceptions import ServiceError
from .services.leaderboard import get_leaderboard
from .services.matches import (
    create_match_request,
    accept_match,
    join_match,
    join_singles,
    list_pending_requests,
)
from .services.results import submit_match_winners
from .storage import Store


def _parse_datetime(value: str) -> datetime.datetime:
    return datetime.datetime.strptime(value, '%Y-%m-%d %H:%M')


def _describe(request) -> str:
    players = ', '.join(str(uid) for uid in request.player_ids)
    booking = request.booking_id if request.booking_id is not None else '-'
    return (
        f'#{request.request_id} {request.match_type} [{players}] '
        f'booking {booking}: {request.status}'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='MatchVerse matchmaking CLI')
    parser.add_argument('--database', help='database URL (defaults to DATABASE_URL)')
    parser.add_argument('--log-level')
    sub = parser.add_subparsers(dest='cmd')

    sub.add_parser('init_db')

    auser = sub.add_parser('add_user')
    auser.add_argument('username')
    auser.add_argument('--points', type=int, default=0)

    abooking = sub.add_parser('add_booking')
    abooking.add_argument('--court', type=int)
    abooking.add_argument('--user', type=int)
    abooking.add_argument('--start', type=_parse_datetime, help='YYYY-MM-DD HH:MM')
    abooking.add_argument('--end', type=_parse_datetime, help='YYYY-MM-DD HH:MM')

    req = sub.add_parser('request_match')
    req.add_argument('match_type', choices=MATCH_TYPES)
    req.add_argument('user_id', type=int)
    req.add_argument('--booking', type=int)
    req.add_argument('--partner', type=int)

    acc = sub.add_parser('accept_match')
    acc.add_argument('request_id', type=int)
    acc.add_argument('user_id', type=int)
    acc.add_argument('--decline', action='store_true')

    jdoubles = sub.add_parser('join_match')
    jdoubles.add_argument('match_id', type=int)
    jdoubles.add_argument('user_id', type=int)
    jdoubles.add_argument('partner_id', type=int)

    jsingles = sub.add_parser('join_singles')
    jsingles.add_argument('match_id', type=int)
    jsingles.add_argument('user_id', type=int)

    winners = sub.add_parser('submit_winners')
    winners.add_argument('match_id', type=int)
    winners.add_argument('winner1_id', type=int)
    winners.add_argument('winner2_id', type=int)

    sub.add_parser('pending')

    board = sub.add_parser('leaderboard')
    board.add_argument('--limit', type=int)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.cmd:
        parser.print_help()
        return 0

    store = Store(args.database)
    try:
        if args.cmd == 'init_db':
            with store.transaction():
                pass
            print(f'Database ready at {store.url}')
        elif args.cmd == 'add_user':
            user = store.create_user(args.username, rank_points=args.points)
            print(f'Created user {user.user_id} ({user.username})')
        elif args.cmd == 'add_booking':
            booking = store.create_booking(args.court, args.user, args.start, args.end)
            print(f'Created booking {booking.booking_id}')
        elif args.cmd == 'request_match':
            request = create_match_request(
                store, args.booking, args.match_type, args.user_id, args.partner
            )
            print(_describe(request))
        elif args.cmd == 'accept_match':
            request = accept_match(store, args.request_id, args.user_id, not args.decline)
            print(_describe(request))
        elif args.cmd == 'join_match':
            print(_describe(join_match(store, args.match_id, args.user_id, args.partner_id)))
        elif args.cmd == 'join_singles':
            print(_describe(join_singles(store, args.match_id, args.user_id)))
        elif args.cmd == 'submit_winners':
            print(submit_match_winners(store, args.match_id, args.winner1_id, args.winner2_id))
        elif args.cmd == 'pending':
            for request in list_pending_requests(store):
                print(_describe(request))
        elif args.cmd == 'leaderboard':
            for entry in get_leaderboard(store, args.limit):
                print(
                    f"{entry['position']}. {entry['username']} "
                    f"{entry['rank_points']} ({entry['rank']})"
                )
    except ServiceError as e:
        print(f'error: {e.message}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
