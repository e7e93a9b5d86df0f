"""Querying the terminal's 16 ANSI colours with OSC 4 and caching them."""

from __future__ import annotations

import json
import os
import re
import sys
import time
from pathlib import Path

import platformdirs

_SIZE = 16
_CACHE_MAX_AGE = 86400
_INDEX = re.compile(r"\+?[0-9]+")
_HEX = re.compile(r"\+?[0-9a-fA-F]+")

ESC = 0x1B
BEL = 0x07
C1_OSC = 0x9D
C1_ST = 0x9C

Color = tuple[int, int, int]


def _parse_hex_u8(text: str) -> int | None:
    if not _HEX.fullmatch(text):
        return None
    value = int(text, 16)
    return value if value <= 0xFF else None


def _parse_component(text: str) -> int | None:
    if len(text) == 1:
        value = _parse_hex_u8(text)
        return None if value is None else value * 17
    if len(text) == 2:
        return _parse_hex_u8(text)
    return _parse_hex_u8(text[:2])


class Palette:
    """The 16 ANSI colours as RGB triples; unknown colours are ``None``."""

    def __init__(self) -> None:
        self.colors: list[Color | None] = [None] * _SIZE
        self._ready_count = 0

    def set(self, index: int, r: int, g: int, b: int) -> None:
        if 0 <= index < _SIZE:
            self.colors[index] = (r, g, b)
            self._ready_count = sum(c is not None for c in self.colors)

    def complete(self) -> bool:
        """True once all 16 colours are known."""
        return self._ready_count == _SIZE

    def parse_osc4_response(self, data: str) -> None:
        """Record the colour from ``4;N;rgb:RR/GG/BB`` (or 1–4 hex digits)."""
        parts = data.split(";", 2)
        if len(parts) < 3 or parts[0] != "4":
            return
        if not _INDEX.fullmatch(parts[1]):
            return
        index = int(parts[1])
        if index >= _SIZE:
            return
        spec = parts[2]
        if not spec.startswith("rgb:"):
            return
        components = spec[len("rgb:"):].split("/")
        if len(components) != 3:
            return
        values = [_parse_component(c) for c in components]
        if all(v is not None for v in values):
            self.set(index, *values)


def strip_dcs_wrappers(data: str) -> str:
    """Unwrap tmux DCS passthrough (``ESC P ... ESC \\``) around responses."""
    raw = data.encode("utf-8", errors="surrogateescape")
    out: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        if i + 1 < n and raw[i] == ESC and raw[i + 1] == ord("P"):
            i += 2
            start = i
            while i < n:
                if i + 1 < n and raw[i] == ESC and raw[i + 1] == ord("\\"):
                    out.append(raw[start:i].decode("utf-8", errors="replace"))
                    i += 2
                    break
                i += 1
        else:
            out.append(chr(raw[i]))
            i += 1
    return "".join(out)


def parse_osc_responses(data: str, palette: Palette) -> None:
    """Feed every OSC sequence in ``data`` to ``palette``."""
    raw = data.encode("utf-8", errors="surrogateescape")
    n = len(raw)
    i = 0
    while i < n:
        if i + 1 < n and raw[i] == ESC and raw[i + 1] == ord("]"):
            i += 2
        elif raw[i] == C1_OSC:
            i += 1
        else:
            i += 1
            continue
        start = i
        while i < n:
            if raw[i] in (BEL, C1_ST):
                palette.parse_osc4_response(raw[start:i].decode("utf-8", errors="replace"))
                i += 1
                break
            if i + 1 < n and raw[i] == ESC and raw[i + 1] == ord("\\"):
                palette.parse_osc4_response(raw[start:i].decode("utf-8", errors="replace"))
                i += 2
                break
            i += 1


def palette_cache_path() -> Path:
    """Where the queried palette is cached."""
    return Path(platformdirs.user_cache_path()) / "gg" / "palette.json"


def save_palette_cache(palette: Palette, path: str | os.PathLike[str] | None = None) -> None:
    """Write the palette as JSON; failures are ignored."""
    target = palette_cache_path() if path is None else Path(path)
    colors = [None if c is None else list(c) for c in palette.colors]
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(colors, separators=(",", ":")), encoding="utf-8")
    except OSError:
        pass


def _valid_color(value: object) -> bool:
    return (
        isinstance(value, list)
        and len(value) == 3
        and all(isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 255 for v in value)
    )


def load_palette_cache(path: str | os.PathLike[str] | None = None) -> Palette | None:
    """A cached palette under a day old with at least 8 colours, or ``None``."""
    target = palette_cache_path() if path is None else Path(path)
    try:
        data = target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    try:
        age = time.time() - target.stat().st_mtime
    except OSError:
        age = 0.0
    if age > _CACHE_MAX_AGE:
        try:
            target.unlink()
        except OSError:
            pass
        return None
    try:
        colors = json.loads(data)
    except ValueError:
        return None
    if not isinstance(colors, list) or len(colors) != _SIZE:
        return None
    if not all(c is None or _valid_color(c) for c in colors):
        return None
    palette = Palette()
    for index, color in enumerate(colors):
        if color is not None:
            palette.set(index, *color)
    if sum(c is not None for c in palette.colors) >= 8:
        return palette
    return None


def _stdin_fd() -> int | None:
    try:
        return sys.stdin.fileno()
    except (AttributeError, ValueError, OSError):
        return None


def drain_stdin() -> None:
    """Discard any bytes already waiting on stdin without blocking."""
    if os.name != "posix":
        return
    import select

    fd = _stdin_fd()
    if fd is None:
        return
    try:
        while True:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready or not os.read(fd, 1024):
                break
    except (OSError, ValueError):
        pass


def _unwrap(raw: str, in_tmux: bool) -> str:
    return strip_dcs_wrappers(raw) if in_tmux else raw


def _write_debug_dump(in_tmux: bool, buf: bytes, raw: str, palette: Palette) -> None:
    home = os.environ.get("HOME")
    if home is None:
        return
    lines = [
        f"in_tmux: {str(in_tmux).lower()}",
        f"raw bytes: {len(buf)}",
        "raw hex: [" + ", ".join(f"{b:02x}" for b in buf[:512]) + "]",
        f"raw str: {raw[:512]!r}",
    ]
    lines += [f"palette[{i}] = {c!r}" for i, c in enumerate(palette.colors)]
    try:
        Path(home, ".cache", "gg-palette-debug.log").write_text(
            "\n".join(lines) + "\n", encoding="utf-8"
        )
    except OSError:
        pass


def _query_unix(palette: Palette) -> None:
    import select
    import termios
    import tty

    fd = _stdin_fd()
    if fd is None:
        return
    try:
        saved = termios.tcgetattr(fd)
        tty.setraw(fd)
    except (termios.error, OSError):
        return

    in_tmux = "TMUX" in os.environ
    buf = bytearray()
    try:
        if in_tmux:
            queries = "".join(f"\x1bPtmux;\x1b\x1b]4;{i};?\x07\x1b\\" for i in range(_SIZE))
        else:
            queries = "".join(f"\x1b]4;{i};?\x07" for i in range(_SIZE))
        try:
            sys.stdout.write(queries)
            sys.stdout.flush()
        except (OSError, ValueError):
            pass

        deadline = time.monotonic() + (0.5 if in_tmux else 0.3)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                ready, _, _ = select.select([fd], [], [], remaining)
                if not ready:
                    break
                chunk = os.read(fd, 1024)
            except OSError:
                break
            if not chunk:
                break
            buf += chunk
            check = Palette()
            parse_osc_responses(_unwrap(bytes(buf).decode("utf-8", errors="replace"), in_tmux), check)
            if check.complete():
                break
    finally:
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        except termios.error:
            pass

    drain_stdin()

    raw = bytes(buf).decode("utf-8", errors="replace")
    parse_osc_responses(_unwrap(raw, in_tmux), palette)
    _write_debug_dump(in_tmux, bytes(buf), raw, palette)

    if any(c is not None for c in palette.colors):
        save_palette_cache(palette)


def query_terminal_colors() -> Palette:
    """The terminal's palette, from the cache or by asking the terminal."""
    cached = load_palette_cache()
    if cached is not None:
        return cached
    palette = Palette()
    if os.name == "posix":
        _query_unix(palette)
    return palette