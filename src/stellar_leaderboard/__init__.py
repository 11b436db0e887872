"""stellar_leaderboard - consolidated on-chain status for Soroban contracts."""

__version__ = "0.1.0"
