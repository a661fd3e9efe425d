"""
Tests for the central logger's message formatting and Qt signal output.
"""

import pytest

from eqmixer.utils.logger import LogLevel, logger, tag_message


@pytest.fixture
def received():
    messages = []

    def slot(msg, level, timestamp):
        messages.append((msg, level))

    logger.signal_emitter.log_message.connect(slot)
    yield messages
    logger.signal_emitter.log_message.disconnect(slot)


class TestLogger:

    def test_component_and_details(self, received):
        logger.warning("Unknown channel", component="MIXER", details="id=9")
        assert received[-1] == ("[MIXER] Unknown channel - id=9", LogLevel.WARNING)

    def test_convenience_tags(self, received):
        logger.mixer(3, "mute True")
        logger.store("Saved")
        assert received[-2][0] == "[MIXER] Ch 3: mute True"
        assert received[-1][0] == "[STORE] Saved"

    def test_debug_reaches_gui_console(self, received):
        logger.eq("Chain rebuilt")
        assert received[-1] == ("[EQ] Chain rebuilt", LogLevel.DEBUG)


class TestFileLogging:

    def test_file_receives_debug_lines(self, tmp_path):
        log_path = tmp_path / "eqmixer.log"
        logger.configure(LogLevel.WARNING, log_file=log_path)
        try:
            logger.store("Saved 2 profile(s)", details="state.json")
        finally:
            logger.close_file()
        logger.store("After close")

        text = log_path.read_text(encoding="utf-8")
        assert "[DEBUG] [STORE] Saved 2 profile(s) - state.json" in text
        assert "After close" not in text

    def test_tag_message_without_component(self):
        assert tag_message("Plain") == "Plain"
        assert tag_message("Plain", details="x") == "Plain - x"
