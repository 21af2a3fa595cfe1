"""Shared helpers for settings components."""

from pathlib import Path

from decouple import AutoConfig

# Repository root: server/settings/components/__init__.py -> parents[3]
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Reads environment variables first, then config/.env if present
config = AutoConfig(search_path=BASE_DIR.joinpath('config'))
