"""
Structural validation of Model Context documents.

The validator never raises: it walks the whole document and returns every
violation it finds, so one call reports all problems at once.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Set, Union

from .context import ModelContext


@dataclass
class ValidationResult:
    """Outcome of validating a Model Context."""

    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


def validate_context(context: Union[ModelContext, Mapping[str, Any]]) -> ValidationResult:
    """
    Check the structural invariants of a Model Context.

    Accepts either a ModelContext or its plain mapping form (for example
    the result of ``json.loads`` on a stored document).

    Args:
        context: Document to validate

    Returns:
        ValidationResult listing every violation found
    """
    if isinstance(context, ModelContext):
        data: Any = context.to_dict()
    else:
        data = context

    errors: List[str] = []

    if not isinstance(data, Mapping):
        return ValidationResult(valid=False, errors=["Model context must be an object"])

    if not data.get("metadata"):
        errors.append("Missing metadata")

    design = data.get("design")
    if not isinstance(design, Mapping):
        errors.append("Missing design")
        return ValidationResult(valid=False, errors=errors)

    structure = design.get("structure")
    elements = design.get("elements")

    hierarchy: Any = []
    if not isinstance(structure, Mapping):
        errors.append("Missing design.structure")
        structure = {}
    else:
        hierarchy = structure.get("hierarchy")
        if not isinstance(hierarchy, list):
            errors.append("Missing design.structure.hierarchy")
            hierarchy = []

    if not isinstance(elements, list):
        errors.append("Missing design.elements")
        elements = []

    if not isinstance(design.get("styles"), Mapping):
        errors.append("Missing design.styles")

    nodes = [node for node in hierarchy if isinstance(node, Mapping)]
    if len(nodes) != len(hierarchy):
        errors.append("Hierarchy entries must be objects")
    element_entries = [element for element in elements if isinstance(element, Mapping)]
    if len(element_entries) != len(elements):
        errors.append("Element entries must be objects")

    hierarchy_ids = _collect_ids(nodes, "Hierarchy node", errors)
    element_ids = _collect_ids(element_entries, "Element", errors)
    hierarchy_set: Set[Any] = set(hierarchy_ids)
    element_set: Set[Any] = set(element_ids)

    for node_id, count in Counter(hierarchy_ids).items():
        if count > 1:
            errors.append(f"Duplicate hierarchy id {node_id}")
    for element_id, count in Counter(element_ids).items():
        if count > 1:
            errors.append(f"Duplicate element id {element_id}")

    root = structure.get("root")
    if root is not None and not _is_id(root):
        errors.append(f"Root id must be a string or number, got {type(root).__name__}")
    # An entirely empty document has nothing to root.
    elif (root or hierarchy_ids) and root not in hierarchy_set:
        errors.append(f"Root node {root} not found in hierarchy")

    for node in nodes:
        node_id = node.get("id")
        parent = node.get("parent")
        if parent is not None:
            if not _is_id(parent):
                errors.append(f"Node {node_id} has a parent that is not a string or number")
            elif parent not in hierarchy_set:
                errors.append(f"Node {node_id} references non-existent parent {parent}")

        children = node.get("children")
        if children is None:
            continue
        if not isinstance(children, list):
            errors.append(f"Node {node_id} children must be a list")
            continue
        for child in children:
            if not _is_id(child):
                errors.append(f"Node {node_id} has a child that is not a string or number")
            elif child not in hierarchy_set:
                errors.append(f"Node {node_id} references non-existent child {child}")

    for element_id in element_ids:
        if element_id not in hierarchy_set:
            errors.append(f"Element {element_id} has no corresponding hierarchy node")
    for node_id in hierarchy_ids:
        if node_id not in element_set:
            errors.append(f"Hierarchy node {node_id} has no corresponding element")

    return ValidationResult(valid=not errors, errors=errors)


def _is_id(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _collect_ids(entries: List[Mapping[str, Any]], label: str, errors: List[str]) -> List[Any]:
    """Return the usable ids of ``entries``, reporting the rest."""
    ids = []
    for entry in entries:
        entry_id = entry.get("id")
        if _is_id(entry_id):
            ids.append(entry_id)
        else:
            errors.append(f"{label} id must be a string or number, got {type(entry_id).__name__}")
    return ids
