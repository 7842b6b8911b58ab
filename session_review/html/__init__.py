"""HTML rendering for the transcript panel."""

from .renderer import (
    CollapsedGroups,
    ExpandControl,
    collapsed_groups,
    expand_control_for,
    get_template_environment,
    render_panel,
    row_classes,
)

__all__ = [
    "CollapsedGroups",
    "ExpandControl",
    "collapsed_groups",
    "expand_control_for",
    "get_template_environment",
    "render_panel",
    "row_classes",
]
