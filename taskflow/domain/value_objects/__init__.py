"""Domain value objects."""

from taskflow.domain.value_objects.node_tag import NodeTag, merge_remarks

__all__ = ["NodeTag", "merge_remarks"]
