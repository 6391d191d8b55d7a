"""
Constants used across the padel club booking system.
"""

# Fixed same-day court slots, in display order
SLOT_TIMES = ("08:00-09:30", "09:30-11:00", "11:00-13:00")

MAX_BOOKING_PLAYERS = 2
MIN_PASSWORD_LENGTH = 4
MIN_MATCHMAKING_PLAYERS = 4  # one 2v2 match

# Key-value buckets
PLAYERS_KEY = "players"
BOOKINGS_KEY = "bookings"
LOGGED_PLAYER_KEY = "logged_player"
