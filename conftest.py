"""Configure pytest for the loyalty project."""
import os
import sys
from pathlib import Path

# =============================================================================
# Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports so app.main loads
# a predictable configuration
os.environ.setdefault("ENVIRONMENT", "test")

# Add project root so `app` and `loyalty` import without installation
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """Ensure paths and environment are set before test collection."""
    os.environ.setdefault("ENVIRONMENT", "test")

    root = str(Path(__file__).parent)
    if root not in sys.path:
        sys.path.insert(0, root)
