from .config_loader import DEFAULT_CONFIG, ConfigLoader
from .config_utils import ConfigMerger

__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'ConfigMerger']
