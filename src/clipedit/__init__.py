"""clipedit: selector-driven, undoable editing of video compositions.

Edits arrive as structured plans that name their target with a selector
("the element labelled Intro", "the second video"). Each accepted edit is
validated, applied to an immutable composition document and recorded as
a reversible patch. Documents compile to a Remotion component.
"""
