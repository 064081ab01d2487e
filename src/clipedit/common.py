"""clipedit.common: shared utilities for the edit engine.

Contains: timecode formatting, id generation, color parsing,
and path variable resolution.
"""

import re
import uuid

from PIL import ImageColor


# ── Timecodes ──────────────────────────────────────────────────────

def frames_to_timecode(frame: int, fps: float) -> str:
    """Convert a frame number to an 'M:SS.s' timecode (e.g. '0:05.5')."""
    total_seconds = frame / fps
    minutes = int(total_seconds // 60)
    seconds = f"{total_seconds % 60:.1f}".rjust(4, "0")
    return f"{minutes}:{seconds}"


def timecode_to_frames(timecode: str, fps: float) -> int:
    """Parse an 'M:SS.s' timecode back to a frame number (floored)."""
    try:
        minutes, seconds = timecode.split(":")
        total_seconds = int(minutes) * 60 + float(seconds)
    except ValueError:
        raise ValueError(
            f"Invalid timecode '{timecode}'. Expected M:SS.s"
        ) from None
    return int(total_seconds * fps)


def format_duration(frames: int, fps: float) -> str:
    """Human-readable duration: '500ms', '3.0s' or '1:05'."""
    seconds = frames / fps
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{int(seconds // 60)}:{int(seconds % 60):02d}"


# ── Ids ────────────────────────────────────────────────────────────

def generate_id(prefix: str, taken: set[str] | None = None) -> str:
    """Return '<prefix>_<12 hex chars>' not present in *taken*."""
    taken = taken or set()
    while True:
        candidate = f"{prefix}_{uuid.uuid4().hex[:12]}"
        if candidate not in taken:
            return candidate


# ── Color utilities ────────────────────────────────────────────────

# CSS keywords the render engine understands but Pillow has no RGB for.
PASSTHROUGH_COLORS = {"transparent", "currentcolor", "inherit"}


def parse_color(value: str) -> tuple[int, ...]:
    """Parse a CSS-ish color ('#fff', '#RRGGBB', 'red', 'rgb(...)').

    Returns an RGB or RGBA tuple. Raises ValueError for anything Pillow
    cannot parse.
    """
    return ImageColor.getrgb(value)


def is_valid_color(value) -> bool:
    """True if *value* is a color string the render engine will accept."""
    if not isinstance(value, str):
        return False
    if value.strip().lower() in PASSTHROUGH_COLORS:
        return True
    try:
        parse_color(value)
    except ValueError:
        return False
    return True


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def resolve_path_vars_deep(obj, paths: dict[str, str]):
    """Recursively resolve ${var} in all string values of a nested object."""
    if isinstance(obj, str):
        return resolve_path_vars(obj, paths)
    elif isinstance(obj, dict):
        return {k: resolve_path_vars_deep(v, paths) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [resolve_path_vars_deep(item, paths) for item in obj]
    return obj
