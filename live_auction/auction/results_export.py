"""
Export auction results for download.

Reads only the public snapshot, so it never touches live state directly.
"""

import logging
from typing import Dict, List

import pandas as pd

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ['timestamp', 'player', 'status', 'team_name', 'team_id', 'amount']


def history_to_dataframe(snapshot: dict) -> pd.DataFrame:
    """
    Flatten settlement history into one row per auctioned player.

    Args:
        snapshot: Public snapshot from AuctionEngine.get_snapshot()

    Returns:
        DataFrame with columns: timestamp, player, status, team_name, team_id, amount
        (most recent first, as in history)
    """
    team_names: Dict[str, str] = {t['id']: t['name'] for t in snapshot.get('teams', [])}

    rows = []
    for record in snapshot.get('auction', {}).get('history', []):
        team_id = record.get('team_id')
        rows.append({
            'timestamp': record.get('timestamp'),
            'player': record.get('player') or '',
            'status': 'unsold' if record.get('unsold') else 'sold',
            'team_name': team_names.get(team_id, '') if team_id else '',
            'team_id': team_id or '',
            'amount': record.get('amount') or 0
        })

    df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
    df['amount'] = df['amount'].astype(int)
    return df


def export_csv(snapshot: dict) -> str:
    """Render results as CSV text with a header row."""
    df = history_to_dataframe(snapshot)
    logger.info(f"Exported {len(df)} results to CSV")
    return df.to_csv(index=False)


def export_json(snapshot: dict) -> dict:
    """History plus each team's balance and purchases."""
    teams: List[dict] = snapshot.get('teams', [])
    return {
        'history': snapshot.get('auction', {}).get('history', []),
        'teams': teams
    }


def team_summary(snapshot: dict) -> pd.DataFrame:
    """
    Spending summary per team.

    Returns:
        DataFrame with team_id, team_name, players, spent, tokens_remaining
    """
    summary_data = []
    for team in snapshot.get('teams', []):
        purchases = team.get('purchases', [])
        summary_data.append({
            'team_id': team['id'],
            'team_name': team['name'],
            'players': len(purchases),
            'spent': sum(p['amount'] for p in purchases),
            'tokens_remaining': team['tokens']
        })

    return pd.DataFrame(
        summary_data,
        columns=['team_id', 'team_name', 'players', 'spent', 'tokens_remaining']
    ).sort_values('team_id').reset_index(drop=True)
