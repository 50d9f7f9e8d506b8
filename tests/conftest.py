"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local buildlens package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of buildlens modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("buildlens"):
        del sys.modules[module_name]


@pytest.fixture
def reset_logging() -> Iterator[None]:
    """Restore structlog and root handlers after a test configures logging."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
