"""FastAPI app entry point for Stormsheet Server."""

import logging
import random

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from api.attacks import router as attacks_router
from api.errors import attack_error_handler, request_validation_handler
from api.grants import router as grants_router
from api.ws import router as ws_router
from config import APP_NAME, DICE_SEED, LOG_LEVEL, VERSION
from engine.dice import DiceRoller
from engine.errors import AttackError
from engine.grants import GrantDeliveryRegistry

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=APP_NAME,
    description="Attack resolution and grant delivery for a tabletop character sheet",
    version=VERSION,
)

# Shared for the life of the process
app.state.roller = DiceRoller(random.Random(DICE_SEED) if DICE_SEED is not None else None)
app.state.grants = GrantDeliveryRegistry()

app.add_exception_handler(AttackError, attack_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

app.include_router(attacks_router, prefix="/calculations/attack", tags=["Attacks"])
app.include_router(grants_router, tags=["Grants"])
app.include_router(ws_router, tags=["WebSocket"])


@app.get("/")
def root() -> dict:
    """Root endpoint returning server info."""
    return {"name": APP_NAME, "version": VERSION, "status": "running"}


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"healthy": True}
