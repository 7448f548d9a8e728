# src/pm_tracker/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..storage.store import Store
from .coordinator import Coordinator


@dataclass
class AppState:
    # Settings are stored on the state for easy access in commands/connectors.
    settings: Any

    store: Store
    coordinator: Coordinator
