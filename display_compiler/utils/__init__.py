"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Atomic I/O and YAML handling (fs)
    - Logging with build context (logging_config)

No module in utils/ may import from upper layers (raster, emitter, cluster, etc.).

Convenience imports:
    from display_compiler.utils import fs
    from display_compiler.utils.logging_config import setup_logging, log_context
"""

from . import fs
from . import logging_config
from .logging_config import (
    get_context,
    log_context,
    pop_context,
    push_context,
    setup_logging,
)

__all__ = [
    'fs',
    'logging_config',
    'get_context',
    'log_context',
    'pop_context',
    'push_context',
    'setup_logging',
]
