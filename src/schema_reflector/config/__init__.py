from .logging_config import BracketLevelFormatter, init_logging
from .reflector_config import DEFAULT_REFERENCE_ROOT, ReflectorConfig

__all__ = ["BracketLevelFormatter", "DEFAULT_REFERENCE_ROOT", "ReflectorConfig", "init_logging"]
