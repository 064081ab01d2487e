"""Composition IR data model.

The composition document is a tree of pydantic models. Field names are
snake_case in Python and camelCase on the wire (``durationInFrames``,
``playbackRate``); the element start frame is ``from_`` in Python because
``from`` is a keyword.

Element properties are a tagged variant: each element type has its own
properties model with typed fields, and every properties model accepts
extra keys so documents written by newer tools still load.

Models are treated as values. Engine code never mutates a model it was
handed; it builds new ones with ``model_copy`` or by re-validating wire
dicts.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .common import generate_id


ElementType = Literal["video", "audio", "text", "image", "shape", "sequence", "group"]

ELEMENT_TYPES = ("video", "audio", "text", "image", "shape", "sequence", "group")

GROUP_TYPES = {"sequence", "group"}

Operation = Literal["add", "update", "delete", "move", "reorder"]

Number = Union[int, float]
Length = Union[int, float, str]


class WireModel(BaseModel):
    """Base for every IR model: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using wire names, dropping None."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Properties (one model per element type) ───────────────────────


class Properties(WireModel):
    model_config = ConfigDict(extra="allow")

    opacity: Number | None = None


class PlacedProperties(Properties):
    x: Number | None = None
    y: Number | None = None
    width: Length | None = None
    height: Length | None = None


class AudioProperties(Properties):
    src: str
    volume: Number | None = None
    playback_rate: Number | None = None
    start_from: int | None = None
    end_at: int | None = None


class VideoProperties(PlacedProperties):
    src: str
    volume: Number | None = None
    playback_rate: Number | None = None
    start_from: int | None = None
    end_at: int | None = None


class ImageProperties(PlacedProperties):
    src: str
    fit: str | None = None


class TextProperties(PlacedProperties):
    text: str
    font_family: str | None = None
    font_size: Number | None = None
    font_weight: str | int | None = None
    color: str | None = None
    background_color: str | None = None
    text_align: str | None = None
    padding: Number | None = None
    border_radius: Number | None = None


class ShapeProperties(PlacedProperties):
    shape: Literal["rectangle", "circle"] | None = None
    fill: str | None = None
    stroke: str | None = None
    stroke_width: Number | None = None
    border_radius: Number | None = None


class GroupProperties(Properties):
    x: Number | None = None
    y: Number | None = None


PROPERTIES_MODELS: dict[str, type[Properties]] = {
    "video": VideoProperties,
    "audio": AudioProperties,
    "image": ImageProperties,
    "text": TextProperties,
    "shape": ShapeProperties,
    "sequence": GroupProperties,
    "group": GroupProperties,
}

# Python attribute name -> wire name, for property fields where they differ.
# Plans must use the wire names.
PROPERTY_WIRE_NAMES = {
    name: info.alias
    for model in PROPERTIES_MODELS.values()
    for name, info in model.model_fields.items()
    if info.alias and info.alias != name
}


# ── Animations ────────────────────────────────────────────────────


class Keyframe(WireModel):
    frame: int
    value: int | float | str


class Animation(WireModel):
    property: str
    keyframes: list[Keyframe] = Field(default_factory=list)
    easing: str | None = None


# ── Elements ──────────────────────────────────────────────────────


class ElementBase(WireModel):
    id: str
    label: str | None = None
    from_: int = Field(default=0, alias="from")
    duration_in_frames: int
    animations: list[Animation] = Field(default_factory=list)

    @property
    def child_elements(self) -> list:
        return []

    @property
    def display_name(self) -> str:
        """'"Intro"' when labelled, otherwise 'text element'."""
        if self.label:
            return f'"{self.label}"'
        return f"{self.type} element"


class VideoElement(ElementBase):
    type: Literal["video"] = "video"
    properties: VideoProperties


class AudioElement(ElementBase):
    type: Literal["audio"] = "audio"
    properties: AudioProperties


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    properties: ImageProperties


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    properties: TextProperties


class ShapeElement(ElementBase):
    type: Literal["shape"] = "shape"
    properties: ShapeProperties = Field(default_factory=ShapeProperties)


class GroupElement(ElementBase):
    type: Literal["sequence", "group"] = "sequence"
    properties: GroupProperties = Field(default_factory=GroupProperties)
    children: list["Element"] = Field(default_factory=list)

    @property
    def child_elements(self) -> list:
        return self.children


Element = Annotated[
    Union[VideoElement, AudioElement, ImageElement, TextElement, ShapeElement, GroupElement],
    Field(discriminator="type"),
]

GroupElement.model_rebuild()

_ELEMENT_ADAPTER = TypeAdapter(Element)


def parse_element(data: dict) -> ElementBase:
    """Validate a wire dict into the matching element variant."""
    return _ELEMENT_ADAPTER.validate_python(data)


# ── Selectors ─────────────────────────────────────────────────────


class ById(WireModel):
    by: Literal["id"] = "id"
    id: str


class ByLabel(WireModel):
    by: Literal["label"] = "label"
    label: str
    exact: bool = False


class ByIndex(WireModel):
    by: Literal["index"] = "index"
    index: int


class ByType(WireModel):
    by: Literal["type"] = "type"
    element_type: ElementType = Field(alias="type")
    index: int | None = None


Selector = Annotated[Union[ById, ByLabel, ByIndex, ByType], Field(discriminator="by")]

_SELECTOR_ADAPTER = TypeAdapter(Selector)


def parse_selector(data: dict):
    return _SELECTOR_ADAPTER.validate_python(data)


# ── Edit plans ────────────────────────────────────────────────────


class PlanChanges(WireModel):
    model_config = ConfigDict(extra="forbid")

    type: ElementType | None = None
    label: str | None = None
    from_: int | None = Field(default=None, alias="from")
    duration_in_frames: int | None = None
    properties: dict[str, Any] | None = None
    animations: list[Animation] | None = None
    children: list[dict[str, Any]] | None = None


class EditPlan(WireModel):
    model_config = ConfigDict(extra="forbid")

    operation: Literal["add", "update", "delete", "move"]
    selector: Selector | None = None
    changes: PlanChanges = Field(default_factory=PlanChanges)


# ── Document ──────────────────────────────────────────────────────


class Patch(WireModel):
    """One applied edit. previous_state holds the wire form of the
    affected element before the edit (absent for add); created holds the
    wire form of an added element, child ids included."""

    id: str
    timestamp: datetime
    operation: Operation
    selector: Selector | None = None
    changes: dict[str, Any] = Field(default_factory=dict)
    previous_state: dict[str, Any] | None = None
    created: dict[str, Any] | None = None
    target_id: str | None = None
    parent_id: str | None = None
    index: int | None = None
    receipt: str | None = None


class Metadata(WireModel):
    width: int
    height: int
    fps: int
    duration_in_frames: int


class Composition(WireModel):
    id: str
    version: int = 1
    metadata: Metadata
    elements: list[Element] = Field(default_factory=list)
    patches: list[Patch] = Field(default_factory=list)


def new_composition(
    width: int = 1920,
    height: int = 1080,
    fps: int = 30,
    duration_in_frames: int = 300,
    composition_id: str | None = None,
) -> Composition:
    """Create an empty composition at version 1."""
    return Composition(
        id=composition_id or generate_id("comp"),
        version=1,
        metadata=Metadata(
            width=width,
            height=height,
            fps=fps,
            duration_in_frames=duration_in_frames,
        ),
    )
