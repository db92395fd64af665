"""
Configuration constants for the live auction server.
"""

import os

# ===== TEAMS =====

# Starting token balance for every team
INITIAL_TOKENS = int(os.getenv('INITIAL_TOKENS', '1000'))

# Static team roster (edit as needed)
TEAMS = [
    {'id': 'TEAM1', 'name': 'Team 1', 'secret': 'leopard'},
    {'id': 'TEAM2', 'name': 'Team 2', 'secret': 'tiger'},
    {'id': 'TEAM3', 'name': 'Team 3', 'secret': 'panther'},
    {'id': 'TEAM4', 'name': 'Team 4', 'secret': 'cheetah'},
    {'id': 'TEAM5', 'name': 'Team 5', 'secret': 'lynx'},
    {'id': 'TEAM6', 'name': 'Team 6', 'secret': 'jaguar'},
]

TEAM_NAME_MAX_LENGTH = 40

# Auctioneer credentials
ADMIN_PASS = os.getenv('ADMIN_PASS', 'adminpass')

# ===== BIDDING =====

# Full bidding window; every accepted bid restarts it
BID_WINDOW_SECONDS = float(os.getenv('BID_WINDOW_SECONDS', '10'))

# Base prices for queued players
BASE_PRICE_ENABLED = True
BASE_PRICE_MIN = 1    # Floor used when no base price is given
BASE_PRICE_MAX = 500

# Pre-load the next queued player right after a settlement
AUTO_LOAD_NEXT_ON_SETTLE = False

# ===== SCHEDULING & BROADCAST =====

# Deadline scheduler period
TICK_INTERVAL_SECONDS = 0.25

# Trailing window for coalescing state broadcasts
UPDATE_INTERVAL_SECONDS = int(os.getenv('UPDATE_INTERVAL_MS', '1000')) / 1000.0

# Snapshot queue preview length
QUEUE_PREVIEW_SIZE = 5

# Max entries returned by the pending players listing
PENDING_LIST_LIMIT = 100

# ===== API SERVER =====

API_HOST = os.getenv('HOST', '0.0.0.0')
API_PORT = int(os.getenv('PORT', '3000'))

# ===== LOGGING =====

LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
