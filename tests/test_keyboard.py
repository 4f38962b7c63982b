import pytest

from slowtail.errors import TerminalIOFailure
from slowtail.keyboard import Key, TerminalKeys, decode_keys


def test_decode_arrow_keys():
    """Test arrow up is faster and arrow down is slower."""
    assert decode_keys(b'\x1b[A') == [Key.FASTER]
    assert decode_keys(b'\x1b[B') == [Key.SLOWER]


def test_decode_application_mode_arrows():
    """Test SS3 arrow sequences decode the same way."""
    assert decode_keys(b'\x1bOA\x1bOB') == [Key.FASTER, Key.SLOWER]


def test_decode_ctrl_c():
    """Test Ctrl-C arrives as an interrupt key."""
    assert decode_keys(b'\x03') == [Key.INTERRUPT]


def test_decode_several_keys_in_one_read():
    """Test a burst of key presses decodes in order."""
    data = b'\x1b[B\x1b[Bx\x1b[A\x03'

    assert decode_keys(data) == [Key.SLOWER, Key.SLOWER, Key.OTHER, Key.FASTER, Key.INTERRUPT]


def test_decode_unknown_escape_sequence():
    """Test other CSI sequences are swallowed whole."""
    # arrow right, then arrow down
    assert decode_keys(b'\x1b[C\x1b[B') == [Key.OTHER, Key.SLOWER]
    # page up carries a parameter
    assert decode_keys(b'\x1b[5~\x03') == [Key.OTHER, Key.INTERRUPT]


def test_decode_lone_escape():
    """Test a bare escape press is just another key."""
    assert decode_keys(b'\x1b') == [Key.OTHER]


def test_open_missing_terminal(tmp_path):
    """Test failing to open the terminal is a terminal failure."""
    keys = TerminalKeys(tty_path=str(tmp_path / 'no-such-tty'))

    with pytest.raises(TerminalIOFailure):
        keys.open()


def test_open_non_terminal(tmp_path):
    """Test a regular file cannot be put in cbreak mode."""
    path = tmp_path / 'not-a-tty'
    path.write_text('')
    keys = TerminalKeys(tty_path=str(path))

    with pytest.raises(TerminalIOFailure):
        keys.open()

    keys.close()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
