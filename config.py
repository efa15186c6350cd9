"""Server-wide configuration constants for Stormsheet Server."""

import os

APP_NAME = "Stormsheet Server"
VERSION = "0.1.0"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

_seed = os.environ.get("DICE_SEED")
DICE_SEED = int(_seed) if _seed else None  # Seeds the shared roller when set

D20_SIDES = 20
CRITICAL_ROLL = 20           # Natural result that flags a critical
FUMBLE_ROLL = 1              # Natural result that always misses
CRITICAL_MULTIPLIER = 2      # Applied to the fully bonused damage total
MIN_DIE_SIZE = 2

DIFFICULTY_MARGIN = 5        # Defense within +/- this of attack power is "medium"
BASE_HIT_CHANCE = 50         # Percent when attack power equals defense
HIT_CHANCE_PER_POINT = 5
MIN_HIT_CHANCE = 5
MAX_HIT_CHANCE = 100

SERVER_URL = os.environ.get("STORMSHEET_URL", "http://127.0.0.1:8000")
