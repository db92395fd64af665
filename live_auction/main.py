"""
Main CLI entry point for the live auction server.
"""

import argparse
import logging
import sys

import uvicorn

from . import config
from .auction.api_server import create_app
from .auction.context import AuctionContext


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
        description='Live Auction Server',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve on the default port (PORT env var or 3000)
  python -m live_auction.main

  # Longer bidding window, verbose logs
  python -m live_auction.main --bid-window 20 --verbose
        """
    )

    parser.add_argument(
        '--host',
        type=str,
        default=config.API_HOST,
        help=f'Interface to bind (default: {config.API_HOST})'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=config.API_PORT,
        help=f'Port to listen on (default: {config.API_PORT})'
    )

    parser.add_argument(
        '--bid-window',
        type=float,
        default=config.BID_WINDOW_SECONDS,
        help='Seconds of bidding after start and after every accepted bid'
    )

    parser.add_argument(
        '--auto-load-next',
        action='store_true',
        default=config.AUTO_LOAD_NEXT_ON_SETTLE,
        help='Load the next queued player right after each settlement'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


def main():
    """Build the auction context and serve it."""
    args = parse_arguments()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    logger.info("="*60)
    logger.info("Live Auction Server")
    logger.info("="*60)

    if config.ADMIN_PASS == 'adminpass':
        logger.warning("Using the default auctioneer password; set ADMIN_PASS")

    try:
        context = AuctionContext.from_config(
            bid_window_seconds=args.bid_window,
            auto_load_next=args.auto_load_next
        )
        app = create_app(context)

        logger.info(f"Listening on http://{args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port, log_level='debug' if args.verbose else 'info')

    except KeyboardInterrupt:
        logger.info("\nServer interrupted by user")
    except Exception as e:
        logger.exception(f"Error while serving: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
