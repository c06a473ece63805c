import os
from typing import Dict, Optional

from easydict import EasyDict as edict

from .env import load_cfg_from_env


def default_config() -> edict:
    """Configuration tree with the visit defaults."""
    return edict(
        surface=edict(width=400, height=300),
        marker=edict(radius=8, stroke_width=2, stroke_color="#ffffff"),
        uploads=edict(max_images=10, max_size_mb=5.0),
    )


def load_config(env: Optional[Dict[str, str]] = None) -> edict:
    """Defaults overridden by ``DENTAL_*`` environment variables."""
    return load_cfg_from_env(default_config(), os.environ if env is None else env)
