"""Domain services: leaderboard persistence and session orchestration.

HTTP routes and socket handlers import from here, keeping transport
concerns separated from the score ratchet and the game sequencing.
"""
