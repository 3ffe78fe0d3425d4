"""
Main CLI entry point for the live player auction house.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .bidding.activity_journal import create_session_filepath
from .bidding.dashboard import get_dashboard_metrics, team_purse_summary
from .bidding.models import PlayerStatus, format_currency
from .bidding.session import AuctionSession


def setup_logging(verbose: bool = False):
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Live Player Auction House',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a scripted demo auction and print the outcome
  python -m auction_house.main --demo

  # Serve the auction API
  python -m auction_house.main --serve --port 8000

  # Serve with 30 second auctions and an activity journal
  python -m auction_house.main --serve --timer 30 --journal
        """
    )

    parser.add_argument(
        '--serve',
        action='store_true',
        help='Run the auction API server'
    )

    parser.add_argument(
        '--demo',
        action='store_true',
        help='Run a scripted auction for the first unsold player (default mode)'
    )

    parser.add_argument(
        '--host',
        type=str,
        default=config.API_HOST,
        help=f'API host (default: {config.API_HOST})'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=config.API_PORT,
        help=f'API port (default: {config.API_PORT})'
    )

    parser.add_argument(
        '--timer',
        type=int,
        default=config.DEFAULT_TIMER_DURATION,
        help=f'Auction timer in seconds for the demo (default: {config.DEFAULT_TIMER_DURATION})'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=config.DEFAULT_SEED,
        help='Random seed for player base prices'
    )

    parser.add_argument(
        '--journal',
        action='store_true',
        help=f'Write every activity to a JSONL journal under {config.ACTIVITY_JOURNAL_DIR}'
    )

    parser.add_argument(
        '--export-csv',
        type=str,
        default=None,
        help='After the demo, export the journal to this CSV path (requires --journal)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


def build_session(args) -> AuctionSession:
    journal_path = None
    if args.journal:
        journal_path = create_session_filepath(Path(config.ACTIVITY_JOURNAL_DIR))
    return AuctionSession(seed=args.seed, journal_path=journal_path)


def run_demo_mode(args):
    """Run one scripted auction end to end."""
    logger = logging.getLogger(__name__)

    logger.info("="*60)
    logger.info("Live Player Auction - Demo")
    logger.info("="*60)

    session = build_session(args)

    unsold = session.store.list_players_by_status(PlayerStatus.UNSOLD)
    if not unsold:
        logger.error("No unsold players available")
        sys.exit(1)

    player = unsold[0]
    created = session.controller.create_auction(player.player_id, timer_duration=args.timer)
    if not created.success:
        logger.error(f"Failed to create auction: {created.message}")
        sys.exit(1)

    auction = created.auction
    logger.info(f"Auction ID: {auction.auction_id}")
    logger.info(f"Player: {player.name} ({player.role.value})")
    logger.info(f"Base Price: {format_currency(player.base_price)}")
    logger.info(f"Timer Duration: {auction.timer_duration}s")

    # Scripted bidding: one accepted ladder plus a rejected low bid
    step = auction.current_bid / 4 or 1
    script = [
        ('MI', auction.current_bid + step),
        ('CSK', auction.current_bid + 2 * step),
        ('RCB', auction.current_bid + step),
        ('MI', auction.current_bid + 3 * step),
    ]
    for team_id, amount in script:
        result = session.engine.place_bid(auction.auction_id, team_id, amount)
        status = "accepted" if result.success else f"rejected ({result.message})"
        logger.info(f"  {team_id} bids {format_currency(amount)}: {status}")

    settled = session.controller.close_auction(auction.auction_id)
    if not settled.success:
        logger.error(f"Failed to settle auction: {settled.message}")
        sys.exit(1)

    sold = session.store.get_player(player.player_id)
    logger.info("\n" + "="*60)
    if sold.status == PlayerStatus.SOLD:
        logger.info(f"{sold.name} SOLD to {sold.team_id} for {format_currency(sold.sold_price)}")
    else:
        logger.info(f"{sold.name} went UNSOLD")
    logger.info("="*60)

    logger.info("Team purses:\n" + team_purse_summary(session.store).to_string(index=False))
    logger.info(f"Dashboard: {get_dashboard_metrics(session.store)}")
    for activity in session.store.recent_activities():
        logger.info(f"  [{activity.activity_type.value}] {activity.message}")

    session.store.validate()
    logger.info("Store invariants hold")

    if args.export_csv:
        if session.journal is None:
            logger.warning("--export-csv needs --journal; nothing exported")
        else:
            session.journal.export_to_csv(Path(args.export_csv))


def run_server_mode(args):
    """Serve the auction API with uvicorn."""
    import uvicorn
    from .bidding.api_server import create_app

    logger = logging.getLogger(__name__)
    logger.info(f"Serving auction API on http://{args.host}:{args.port}")

    app = create_app(build_session(args))
    uvicorn.run(app, host=args.host, port=args.port, log_level='debug' if args.verbose else 'info')


def main(argv=None):
    """Main execution function with mode branching."""
    args = parse_arguments(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        if args.serve:
            run_server_mode(args)
        else:
            run_demo_mode(args)
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
    except Exception as e:
        logger.exception(f"Error during execution: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
