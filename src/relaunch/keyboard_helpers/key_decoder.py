"""Turn raw terminal bytes into key names."""

from __future__ import annotations

from typing import List

ESC = 0x1B
CTRL_R = 0x12  # DC2

KEY_F5 = "F5"
KEY_CTRL_R = "CTRL_R"
KEY_SPACE = "SPACE"
KEY_ESCAPE = "ESC"

# xterm and friends send CSI 15 ~ (with an optional ;modifier), the Linux console CSI [ E
_CSI_KEYS = {
    b"15~": KEY_F5,
    b"[E": KEY_F5,
}
_SS3_KEYS = {
    b"P": "F1",
    b"Q": "F2",
    b"R": "F3",
    b"S": "F4",
}


class KeyDecoder:
    """
    Incremental decoder for keystrokes read from a cbreak terminal.

    Escape sequences may arrive split across reads; an unfinished sequence
    is kept until the next :meth:`feed`. Unknown sequences decode to their
    raw text so callers can ignore them.
    """

    def __init__(self) -> None:
        self._pending = b""

    @property
    def pending(self) -> bytes:
        return self._pending

    def feed(self, data: bytes) -> List[str]:
        buffer = self._pending + data
        self._pending = b""
        keys: List[str] = []
        index = 0
        while index < len(buffer):
            byte = buffer[index]
            if byte == ESC:
                consumed, key = _decode_escape(buffer, index)
                if consumed == 0:
                    self._pending = buffer[index:]
                    break
                keys.append(key)
                index += consumed
                continue
            keys.append(_decode_plain(byte))
            index += 1
        return keys

    def flush(self) -> List[str]:
        """Return whatever is pending as a bare escape (no more bytes are coming)."""
        if not self._pending:
            return []
        self._pending = b""
        return [KEY_ESCAPE]


def _decode_plain(byte: int) -> str:
    if byte == CTRL_R:
        return KEY_CTRL_R
    if byte == 0x20:
        return KEY_SPACE
    return chr(byte)


def _decode_escape(buffer: bytes, start: int) -> tuple[int, str]:
    """Return (bytes consumed, key) for the sequence at *start*; 0 consumed means incomplete."""
    if start + 1 >= len(buffer):
        return 0, ""

    introducer = buffer[start + 1]
    if introducer == ord("["):
        return _decode_csi(buffer, start)
    if introducer == ord("O"):
        if start + 2 >= len(buffer):
            return 0, ""
        final = buffer[start + 2 : start + 3]
        return 3, _SS3_KEYS.get(final, "ESC O" + final.decode("latin-1"))
    return 1, KEY_ESCAPE


def _decode_csi(buffer: bytes, start: int) -> tuple[int, str]:
    body_start = start + 2
    # Linux console function keys: ESC [ [ A..E
    if buffer[body_start : body_start + 1] == b"[":
        if body_start + 1 >= len(buffer):
            return 0, ""
        body = buffer[body_start : body_start + 2]
        return 4, _CSI_KEYS.get(body, "CSI " + body.decode("latin-1"))

    index = body_start
    while index < len(buffer):
        byte = buffer[index]
        if 0x40 <= byte <= 0x7E:
            body = buffer[body_start : index + 1]
            return index + 1 - start, _CSI_KEYS.get(_strip_modifier(body), "CSI " + body.decode("latin-1"))
        if not 0x30 <= byte <= 0x3F:
            # not a CSI parameter byte (e.g. Alt+[ then SPACE): bare escape, rest decoded as keys
            return 1, KEY_ESCAPE
        index += 1
    return 0, ""


def _strip_modifier(body: bytes) -> bytes:
    """``15;5~`` (Ctrl+F5) decodes like ``15~``."""
    params, final = body[:-1], body[-1:]
    return params.split(b";", 1)[0] + final


__all__ = ["KEY_CTRL_R", "KEY_ESCAPE", "KEY_F5", "KEY_SPACE", "KeyDecoder"]
