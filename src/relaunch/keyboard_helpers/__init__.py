"""Keystroke decoding for the keyboard listener."""

from .key_decoder import KEY_CTRL_R, KEY_ESCAPE, KEY_F5, KEY_SPACE, KeyDecoder

__all__ = ["KEY_CTRL_R", "KEY_ESCAPE", "KEY_F5", "KEY_SPACE", "KeyDecoder"]
