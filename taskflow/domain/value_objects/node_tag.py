"""NodeTag value object: the `[WF_NODE:<id>]` marker embedded in task remarks.

The tag is the only persisted pointer from a task instance into its
workflow graph. It must survive remark edits: any new remarks that do not
carry a tag get the previously stored tag appended.
"""

import re
from dataclasses import dataclass

# Node ids are numeric ("7") or the designer's "node-7" form.
_NODE_ID_PATTERN = r"(?:node-)?\d+"
_TAG_RE = re.compile(r"\[WF_NODE:(" + _NODE_ID_PATTERN + r")\]")
_NODE_ID_RE = re.compile(r"^" + _NODE_ID_PATTERN + r"$")


@dataclass(frozen=True)
class NodeTag:
    """Value object for a workflow node tag (parse, format, merge)."""

    node_id: str

    def __post_init__(self) -> None:
        if not self.node_id or not _NODE_ID_RE.match(self.node_id):
            raise ValueError(
                f"Node id must be digits or 'node-<digits>', got: {self.node_id!r}"
            )

    def format(self) -> str:
        """Return the marker text, e.g. '[WF_NODE:7]'."""
        return f"[WF_NODE:{self.node_id}]"

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def find(cls, remarks: str | None) -> "NodeTag | None":
        """Return the first tag embedded in remarks, or None."""
        if not remarks:
            return None
        match = _TAG_RE.search(remarks)
        if not match:
            return None
        return cls(match.group(1))

    @classmethod
    def parse(cls, text: str) -> "NodeTag":
        """Parse a bare marker ('[WF_NODE:7]'). Raises ValueError if text is not exactly one tag."""
        match = _TAG_RE.fullmatch(text.strip())
        if not match:
            raise ValueError(f"Not a workflow node tag: {text!r}")
        return cls(match.group(1))


def merge_remarks(new_remarks: str | None, stored_remarks: str | None) -> str:
    """Combine caller remarks with the tag from stored remarks.

    If new_remarks already contains the stored tag, it is used as-is.
    Otherwise the stored tag (if any) is appended after a single space and
    the result is trimmed. A different tag typed by the caller does not
    suppress the stored one; NodeTag.find still resolves the first tag.
    """
    final = new_remarks or ""
    stored_tag = NodeTag.find(stored_remarks)
    if stored_tag is None or stored_tag.format() in final:
        return final
    return f"{final} {stored_tag.format()}".strip()
