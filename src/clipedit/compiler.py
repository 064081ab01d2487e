"""Composition to Remotion TSX compiler.

Template-based and deterministic: the same composition always compiles to
the same bytes. Nothing in the output depends on wall-clock time, random
ids or dict ordering beyond the document's own order.

Layout of the generated module:

  - header comment with the composition id and version,
  - remotion imports,
  - one exported React component, ``Composition_<id>``, rendering every
    element as a ``<Sequence>`` tagged with ``data-element-id``,
  - ``compositionConfig`` carrying the metadata.

Animations compile to ``interpolate()`` (numbers) or
``interpolateColors()`` (color strings). Keyframe frames are relative to
the element's start, so each call subtracts the element's absolute
offset (its own ``from`` plus every enclosing group's) from the
component-level ``frame``.
"""

import json
import logging
import re
from dataclasses import dataclass, field

from .animation import easing_expression, is_known_easing, sorted_keyframes
from .errors import CompileError
from .model import GROUP_TYPES
from .selectors import walk
from .validation import validate_composition

logger = logging.getLogger(__name__)

INDENT = "  "

# Transform property -> CSS transform function; composed in this order.
TRANSFORMS = {
    "scale": "scale(${{{}}})",
    "rotation": "rotate(${{{}}}deg)",
    "translateX": "translateX(${{{}}}px)",
    "translateY": "translateY(${{{}}}px)",
}

# Animated property -> style key, where they differ.
STYLE_KEYS = {"x": "left", "y": "top", "fill": "backgroundColor"}

MEDIA_TYPES = {"video", "audio"}


@dataclass(frozen=True)
class CompileResult:
    code: str
    warnings: list[str] = field(default_factory=list)


def compile_composition(composition) -> str:
    """Compile *composition* to TSX source. Raises CompileError."""
    return compile_with_diagnostics(composition).code


def compile_with_diagnostics(composition) -> CompileResult:
    """Compile *composition*, also returning non-fatal warnings.

    Raises:
        CompileError: invalid metadata, bad element timing, duplicate ids
            or animations mixing numeric and string keyframes. Every
            problem is reported, not just the first.
    """
    problems = validate_composition(composition) + _animation_problems(composition)
    if problems:
        raise CompileError(problems)

    warnings: list[str] = []
    body = []
    for element in composition.elements:
        body.extend(_render_element(element, 0, 3, warnings))

    meta = composition.metadata
    name = component_name(composition.id)
    lines = [
        "/**",
        " * Auto-generated Remotion composition",
        " * DO NOT EDIT - generated from composition IR",
        f" * ID: {composition.id}",
        f" * Version: {composition.version}",
        " */",
        "",
        'import React from "react";',
        "import {",
        "  AbsoluteFill,",
        "  Audio,",
        "  Easing,",
        "  Img,",
        "  Sequence,",
        "  Video,",
        "  interpolate,",
        "  interpolateColors,",
        "  useCurrentFrame,",
        '} from "remotion";',
        "",
        f"export const {name}: React.FC = () => {{",
        "  const frame = useCurrentFrame();",
        "",
        "  return (",
        '    <AbsoluteFill style={{ backgroundColor: "#000" }}>',
        *body,
        "    </AbsoluteFill>",
        "  );",
        "};",
        "",
        "export const compositionConfig = {",
        f"  id: {_js(name)},",
        f"  width: {meta.width},",
        f"  height: {meta.height},",
        f"  fps: {meta.fps},",
        f"  durationInFrames: {meta.duration_in_frames},",
        "};",
        "",
    ]
    code = "\n".join(lines)
    for problem in validate_compiled_code(code):
        warnings.append(f"Generated code: {problem}")

    for warning in warnings:
        logger.warning(warning)
    return CompileResult(code=code, warnings=warnings)


def component_name(composition_id: str) -> str:
    return "Composition_" + re.sub(r"[^a-zA-Z0-9_]", "_", composition_id)


def validate_compiled_code(code: str) -> list[str]:
    """Cheap sanity checks on generated source; returns problems found."""
    errors = []
    if "import" not in code:
        errors.append("Missing imports")
    if "export const" not in code:
        errors.append("Missing export")
    if "<AbsoluteFill" not in code:
        errors.append("Missing AbsoluteFill wrapper")

    opened = len(re.findall(r"<[A-Za-z][A-Za-z]*[\s>]", code))
    closed = len(re.findall(r"</[A-Za-z][A-Za-z]*>", code))
    self_closed = len(re.findall(r"/>", code))
    if opened != closed + self_closed:
        errors.append("Possible unclosed tags")
    return errors


# ── Problems found before rendering ──────────────────────────────


def _animation_problems(composition) -> list[str]:
    problems = []
    for element in walk(composition.elements):
        for anim in element.animations:
            kinds = {isinstance(kf.value, str) for kf in anim.keyframes}
            if len(kinds) > 1:
                problems.append(
                    f"Element {element.id}: animation '{anim.property}' "
                    f"mixes numeric and string keyframes"
                )
    return problems


# ── Values ────────────────────────────────────────────────────────


def _js(value) -> str:
    """JS literal for a JSON-compatible Python value."""
    return json.dumps(value)


def _style(entries: dict) -> str:
    return "{{ " + ", ".join(f"{k}: {v}" for k, v in entries.items()) + " }}"


# ── Animations ────────────────────────────────────────────────────


def _interpolation(anim, frame_expr: str, element_id: str, warnings: list) -> str | None:
    keyframes = sorted_keyframes(anim)
    if len(keyframes) < 2:
        warnings.append(
            f"Element {element_id}: animation '{anim.property}' has fewer than "
            f"2 keyframes, skipped"
        )
        return None

    easing = None
    if anim.easing is not None:
        if is_known_easing(anim.easing):
            easing = easing_expression(anim.easing)
        else:
            warnings.append(
                f"Element {element_id}: unknown easing '{anim.easing}' on "
                f"'{anim.property}', compiled without easing"
            )

    frames = "[" + ", ".join(str(kf.frame) for kf in keyframes) + "]"
    values = "[" + ", ".join(_js(kf.value) for kf in keyframes) + "]"
    options = 'extrapolateLeft: "clamp", extrapolateRight: "clamp"'
    if easing is not None:
        options += f", easing: {easing}"

    if isinstance(keyframes[0].value, str):
        progress = frame_expr
        if easing is not None:
            progress = f"interpolate({frame_expr}, {frames}, {frames}, {{ {options} }})"
        return f"interpolateColors({progress}, {frames}, {values})"
    return f"interpolate({frame_expr}, {frames}, {values}, {{ {options} }})"


def _animated_style(element, offset: int, warnings: list) -> dict:
    """Style entries for *element*'s animations, transforms composed.

    Static transform properties join the composed transform unless the
    same property is also animated.
    """
    frame_expr = f"frame - {offset}" if offset else "frame"
    entries = {}
    extra = element.properties.model_extra or {}
    transforms = {p: _js(extra[p]) for p in TRANSFORMS if extra.get(p) is not None}
    for anim in element.animations:
        if element.type in MEDIA_TYPES and anim.property in ("volume", "playbackRate"):
            continue
        expr = _interpolation(anim, frame_expr, element.id, warnings)
        if expr is None:
            continue
        if anim.property in TRANSFORMS:
            transforms[anim.property] = expr
        else:
            entries[STYLE_KEYS.get(anim.property, anim.property)] = expr
    if transforms:
        parts = [TRANSFORMS[p].format(transforms[p]) for p in TRANSFORMS if p in transforms]
        entries["transform"] = "`" + " ".join(parts) + "`"
    return entries


def _volume(element, warnings: list) -> str:
    """Static volume, or a per-frame callback when animated.

    Remotion passes the callback frames relative to the media start, which
    is exactly the keyframe frame space.
    """
    for anim in element.animations:
        if anim.property == "playbackRate":
            warnings.append(
                f"Element {element.id}: playbackRate cannot be animated, "
                f"using the static value"
            )
    for anim in element.animations:
        if anim.property == "volume":
            expr = _interpolation(anim, "f", element.id, warnings)
            if expr is not None:
                return f"{{(f) => {expr}}}"
    volume = element.properties.volume
    return "{" + _js(1 if volume is None else volume) + "}"


def _merge(static: dict, animated: dict) -> dict:
    merged = dict(static)
    merged.update(animated)
    return merged


# ── Elements ──────────────────────────────────────────────────────


def _render_element(element, parent_offset: int, depth: int, warnings: list) -> list[str]:
    pad = INDENT * depth
    offset = parent_offset + element.from_
    attrs = (
        f"from={{{element.from_}}} durationInFrames={{{element.duration_in_frames}}} "
        f"data-element-id={_js(element.id)}"
    )
    if element.label:
        attrs += f" data-label={{{_js(element.label)}}}"

    content = _RENDERERS[element.type](element, offset, depth + 1, warnings)
    return [f"{pad}<Sequence {attrs}>", *content, f"{pad}</Sequence>"]


def _placement(props) -> dict:
    entries = {"position": '"absolute"'}
    entries["left"] = _js(props.x if props.x is not None else 0)
    entries["top"] = _js(props.y if props.y is not None else 0)
    if props.width is not None:
        entries["width"] = _js(props.width)
    if props.height is not None:
        entries["height"] = _js(props.height)
    return entries


def _media_attrs(element, warnings: list) -> list[str]:
    props = element.properties
    attrs = [
        f"src={_js(props.src)}",
        f"volume={_volume(element, warnings)}",
        f"playbackRate={{{_js(props.playback_rate if props.playback_rate is not None else 1)}}}",
        f"startFrom={{{_js(props.start_from or 0)}}}",
    ]
    if props.end_at is not None:
        attrs.append(f"endAt={{{_js(props.end_at)}}}")
    return attrs


def _render_video(element, offset, depth, warnings):
    props = element.properties
    attrs = _media_attrs(element, warnings)
    static = {}
    if any(v is not None for v in (props.x, props.y, props.width, props.height)):
        static = _placement(props)
    if props.opacity is not None:
        static["opacity"] = _js(props.opacity)
    style = _merge(static, _animated_style(element, offset, warnings))
    if style:
        attrs.append(f"style={_style(style)}")
    pad = INDENT * depth
    return [f"{pad}<Video", *(f"{pad}{INDENT}{a}" for a in attrs), f"{pad}/>"]


def _render_audio(element, offset, depth, warnings):
    attrs = _media_attrs(element, warnings)
    for anim in element.animations:
        if anim.property not in ("volume", "playbackRate"):
            warnings.append(
                f"Element {element.id}: audio cannot animate '{anim.property}', skipped"
            )
    pad = INDENT * depth
    return [f"{pad}<Audio", *(f"{pad}{INDENT}{a}" for a in attrs), f"{pad}/>"]


def _render_image(element, offset, depth, warnings):
    props = element.properties
    static = _placement(props)
    static["objectFit"] = _js(props.fit or "contain")
    static["opacity"] = _js(props.opacity if props.opacity is not None else 1)
    style = _merge(static, _animated_style(element, offset, warnings))
    pad = INDENT * depth
    return [
        f"{pad}<Img",
        f"{pad}{INDENT}src={_js(props.src)}",
        f"{pad}{INDENT}style={_style(style)}",
        f"{pad}/>",
    ]


def _render_text(element, offset, depth, warnings):
    props = element.properties

    def pick(value, default):
        return _js(default if value is None else value)

    static = _placement(props)
    static.update({
        "fontFamily": pick(props.font_family, "Arial"),
        "fontSize": pick(props.font_size, 48),
        "fontWeight": pick(props.font_weight, "normal"),
        "color": pick(props.color, "#fff"),
        "backgroundColor": pick(props.background_color, "transparent"),
        "textAlign": pick(props.text_align, "center"),
        "padding": pick(props.padding, 20),
        "borderRadius": pick(props.border_radius, 0),
        "display": '"flex"',
        "alignItems": '"center"',
        "justifyContent": '"center"',
    })
    if props.opacity is not None:
        static["opacity"] = _js(props.opacity)
    style = _merge(static, _animated_style(element, offset, warnings))
    pad = INDENT * depth
    return [
        f"{pad}<div style={_style(style)}>",
        f"{pad}{INDENT}{{{_js(props.text)}}}",
        f"{pad}</div>",
    ]


def _render_shape(element, offset, depth, warnings):
    props = element.properties

    def pick(value, default):
        return _js(default if value is None else value)

    stroke = props.stroke or "transparent"
    stroke_width = props.stroke_width or 0
    static = {
        "position": '"absolute"',
        "left": pick(props.x, 0),
        "top": pick(props.y, 0),
        "width": pick(props.width, 100),
        "height": pick(props.height, 100),
        "backgroundColor": pick(props.fill, "#fff"),
        "border": _js(f"{stroke_width}px solid {stroke}"),
    }
    if props.shape == "circle":
        static["borderRadius"] = '"50%"'
    else:
        static["borderRadius"] = pick(props.border_radius, 0)
    if props.opacity is not None:
        static["opacity"] = _js(props.opacity)
    style = _merge(static, _animated_style(element, offset, warnings))
    return [f"{INDENT * depth}<div style={_style(style)} />"]


def _render_group(element, offset, depth, warnings):
    props = element.properties
    static = {}
    if props.x is not None:
        static["left"] = _js(props.x)
    if props.y is not None:
        static["top"] = _js(props.y)
    if props.opacity is not None:
        static["opacity"] = _js(props.opacity)
    style = _merge(static, _animated_style(element, offset, warnings))

    pad = INDENT * depth
    opening = f"{pad}<AbsoluteFill style={_style(style)}>" if style else f"{pad}<AbsoluteFill>"
    lines = [opening]
    for child in element.children:
        lines.extend(_render_element(child, offset, depth + 1, warnings))
    lines.append(f"{pad}</AbsoluteFill>")
    return lines


_RENDERERS = {
    "video": _render_video,
    "audio": _render_audio,
    "image": _render_image,
    "text": _render_text,
    "shape": _render_shape,
}
_RENDERERS.update({t: _render_group for t in GROUP_TYPES})
