"""Test environment defaults.

Importing ``app`` loads the configuration and opens a log file, so tests keep
logs out of the repository and skip the runtime initialization by default.
"""

from __future__ import annotations

import os
import tempfile

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "midi_player_test_logs"))
os.environ.setdefault("MIDI_PLAYER_SKIP_APP_INIT", "1")
