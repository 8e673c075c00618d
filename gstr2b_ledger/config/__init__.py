from .loader import ConfigError, load_config
from .state_codes import load_state_codes

__all__ = [
    "ConfigError",
    "load_config",
    "load_state_codes",
]
