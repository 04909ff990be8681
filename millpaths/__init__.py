"""Toolpath geometry for PCB isolation milling."""

__version__ = "2.5.0"

__all__ = [
    "attach",
    "geometry",
    "outline_bridges",
    "path_finding",
    "regions",
    "segment_tree",
    "segmentize",
    "spikes",
    "svg_writer",
    "travel",
]