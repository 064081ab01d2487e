"""Keyframe easing and sampling.

One fixed easing table serves three consumers:
  - the edit validator, which rejects unknown easing names,
  - the compiler, which maps names to render-engine easing expressions,
  - sample_animation(), which evaluates an animated value at a frame
    (`clipedit resolve --at` previews values this way).

Easing is applied per keyframe segment, matching the render engine's
interpolate(): between keyframes k and k+1 the progress t in [0, 1] is
eased, then the value is lerped. Values outside the keyframe range clamp
to the first/last keyframe.
"""

import numpy as np

from .common import parse_color


# ── Easing curves ────────────────────────────────────────────────


def _cubic_bezier(x1: float, y1: float, x2: float, y2: float, samples: int = 1001):
    """Return a vectorized easing f(t) for a CSS-style cubic-bezier curve.

    The curve is sampled once on a parameter grid; f(t) then looks the
    progress up by x with np.interp, which is monotonic for valid curves.
    """
    s = np.linspace(0.0, 1.0, samples)
    inv = 1.0 - s
    xs = 3 * inv**2 * s * x1 + 3 * inv * s**2 * x2 + s**3
    ys = 3 * inv**2 * s * y1 + 3 * inv * s**2 * y2 + s**3

    def _ease(t):
        return np.interp(t, xs, ys)
    return _ease


def _quad_in(t):
    return t * t


def _quad_out(t):
    return t * (2 - t)


def _quad_in_out(t):
    t = np.asarray(t, dtype=float)
    return np.where(t < 0.5, 2 * t * t, -1 + (4 - 2 * t) * t)


# name -> (render-engine expression, sampling function)
EASINGS = {
    "linear": ("Easing.linear", lambda t: t),
    "ease": ("Easing.ease", _cubic_bezier(0.42, 0.0, 1.0, 1.0)),
    "ease-in": ("Easing.in(Easing.quad)", _quad_in),
    "ease-out": ("Easing.out(Easing.quad)", _quad_out),
    "ease-in-out": ("Easing.inOut(Easing.quad)", _quad_in_out),
}

VALID_EASINGS = set(EASINGS)


def is_known_easing(name: str | None) -> bool:
    """None means 'no easing' and is always valid."""
    return name is None or name in EASINGS


def easing_expression(name: str | None) -> str | None:
    """Render-engine easing expression, or None for no/unknown easing."""
    if name is None or name not in EASINGS:
        return None
    return EASINGS[name][0]


# ── Sampling ─────────────────────────────────────────────────────


def sorted_keyframes(animation) -> list:
    """Keyframes ordered by frame (stable for equal frames)."""
    return sorted(animation.keyframes, key=lambda kf: kf.frame)


def sample_animation(animation, frame):
    """Evaluate *animation* at *frame* (relative to the element start).

    *frame* may be a scalar or array-like; numeric animations return a
    float or ndarray accordingly. Color animations return a '#rrggbb'
    string (scalar frames only). Unknown easing names sample linearly,
    the same way the compiler degrades them.
    """
    keyframes = sorted_keyframes(animation)
    if not keyframes:
        raise ValueError(f"Animation '{animation.property}' has no keyframes")

    values = [kf.value for kf in keyframes]
    if all(isinstance(v, str) for v in values):
        return _sample_color(keyframes, frame, animation.easing)
    if any(isinstance(v, str) for v in values):
        raise ValueError(
            f"Animation '{animation.property}' mixes numeric and string values"
        )

    frames = np.array([kf.frame for kf in keyframes], dtype=float)
    vals = np.array(values, dtype=float)
    result = _sample_numeric(frames, vals, np.asarray(frame, dtype=float), animation.easing)
    if np.ndim(frame) == 0:
        return float(result)
    return result


def _progress(frames: np.ndarray, at: np.ndarray, easing: str | None):
    """Segment index and eased progress for each sample point."""
    last = len(frames) - 1
    idx = np.clip(np.searchsorted(frames, at, side="right") - 1, 0, max(last - 1, 0))
    f0 = frames[idx]
    f1 = frames[np.minimum(idx + 1, last)]
    span = np.where(f1 > f0, f1 - f0, 1.0)
    t = np.clip((at - f0) / span, 0.0, 1.0)
    ease = EASINGS.get(easing or "linear", EASINGS["linear"])[1]
    return idx, ease(t)


def _sample_numeric(frames: np.ndarray, vals: np.ndarray, at: np.ndarray, easing: str | None):
    if len(frames) == 1:
        return np.full(np.shape(at), vals[0])
    idx, t = _progress(frames, at, easing)
    v0 = vals[idx]
    v1 = vals[np.minimum(idx + 1, len(vals) - 1)]
    return v0 + (v1 - v0) * t


def _sample_color(keyframes: list, frame, easing: str | None) -> str:
    if np.ndim(frame) != 0:
        raise ValueError("Color animations can only be sampled at a single frame")
    frames = np.array([kf.frame for kf in keyframes], dtype=float)
    rgb = np.array([parse_color(kf.value)[:3] for kf in keyframes], dtype=float)
    channels = [
        _sample_numeric(frames, rgb[:, c], np.asarray(float(frame)), easing)
        for c in range(3)
    ]
    r, g, b = (int(round(float(ch))) for ch in channels)
    return f"#{r:02x}{g:02x}{b:02x}"
