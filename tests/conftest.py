"""
Test configuration and shared constants for the payload tester tests.

Makes the flat top-level modules importable when running under pytest.
"""

import os
import sys

# Ensure parent directory is in path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# 42 bytes, the size used in the documented examples
TEST_PAYLOAD = b"The quick brown fox jumps over a lazy dog."
TEST_PORT = "8080"
