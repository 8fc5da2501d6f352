"""Data-side helpers for ISDB tuner recording: descrambling, TS splitting, channel parsing, buffering and UDP output."""

__version__ = "0.1.0"
__all__ = ["cli", "descramble", "errors", "hdus", "ringbuf", "settings", "tssplitter", "udp"]