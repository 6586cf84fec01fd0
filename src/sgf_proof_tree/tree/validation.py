"""Consistency checks for loaded proof trees.

The validator never raises on a bad tree; every finding becomes a
:class:`ValidationIssue` in the returned :class:`ValidationResult`.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Set

from sgf_proof_tree.shared import DiagnosticSeverity, get_logger

from .container import TreeContainer
from .node import NodeKind, ProofNode


class ValidationLevel(Enum):
    """Validation strictness levels."""

    MINIMAL = auto()     # Links and sizes only
    STANDARD = auto()    # Plus proof consistency warnings
    STRICT = auto()      # Proof inconsistencies are errors


class ValidationIssueType(Enum):
    """Types of validation issues that can be detected."""

    STRUCTURAL = "structural"
    SIZE = "size"
    PROOF = "proof"


@dataclass
class ValidationIssue:
    """Single validation finding."""

    issue_type: ValidationIssueType
    severity: DiagnosticSeverity
    message: str
    node_id: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate issue data."""
        if not self.message:
            raise ValueError("Validation issue message cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.issue_type.value,
            "severity": self.severity.name,
            "message": self.message,
            "node_id": self.node_id,
        }


@dataclass
class ValidationResult:
    """Outcome of validating one tree."""

    validation_level: ValidationLevel = ValidationLevel.STANDARD
    issues: List[ValidationIssue] = field(default_factory=list)
    nodes_validated: int = 0
    processing_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error_count == 0

    @property
    def error_count(self) -> int:
        """Get number of error-level issues."""
        return len([
            issue for issue in self.issues
            if issue.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ])

    @property
    def warning_count(self) -> int:
        """Get number of warning-level issues."""
        return len([
            issue for issue in self.issues
            if issue.severity == DiagnosticSeverity.WARNING
        ])

    def get_issues_by_type(self, issue_type: ValidationIssueType) -> List[ValidationIssue]:
        """Get validation issues of specific type."""
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "validation_level": self.validation_level.name,
            "nodes_validated": self.nodes_validated,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "issues": [issue.to_dict() for issue in self.issues],
        }


class ProofTreeValidator:
    """Check tree links, aggregated sizes and proof consistency."""

    def __init__(
        self,
        validation_level: ValidationLevel = ValidationLevel.STANDARD,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize proof tree validator.

        Args:
            validation_level: Level of validation strictness
            correlation_id: Optional correlation ID for request tracking
        """
        self.validation_level = validation_level
        self.logger = get_logger(__name__, correlation_id, "tree_validator")

    def validate(self, tree: TreeContainer[ProofNode]) -> ValidationResult:
        """Validate ``tree``.

        Args:
            tree: Loaded proof tree

        Returns:
            ValidationResult listing every finding
        """
        start_time = time.time()
        result = ValidationResult(validation_level=self.validation_level)

        reachable = self._check_structure(tree, result)
        self._check_sizes(tree, reachable, result)
        if self.validation_level is not ValidationLevel.MINIMAL:
            self._check_proofs(tree, reachable, result)

        result.nodes_validated = len(tree)
        result.processing_time_ms = (time.time() - start_time) * 1000
        self.logger.info(
            "Tree validation completed",
            extra={
                "validation_level": self.validation_level.name,
                "success": result.success,
                "error_count": result.error_count,
                "warning_count": result.warning_count,
            },
        )
        return result

    def _structural(
        self, result: ValidationResult, message: str, node_id: Optional[int]
    ) -> None:
        result.issues.append(ValidationIssue(
            ValidationIssueType.STRUCTURAL, DiagnosticSeverity.ERROR, message, node_id
        ))

    def _child_chain(
        self,
        tree: TreeContainer[ProofNode],
        node: ProofNode,
        result: ValidationResult,
    ) -> List[ProofNode]:
        """Walk the child chain of ``node`` without trusting its links."""
        chain: List[ProofNode] = []
        seen: Set[int] = set()
        handle = node.first_child
        while handle is not None:
            if handle in seen:
                self._structural(result, f"Cycle in child chain of node {node.id}", node.id)
                break
            seen.add(handle)
            try:
                child = tree.get(handle)
            except KeyError:
                self._structural(result, f"Dangling child link {handle} in node {node.id}", node.id)
                break
            chain.append(child)
            handle = child.next_sibling
        return chain

    def _check_structure(
        self, tree: TreeContainer[ProofNode], result: ValidationResult
    ) -> Set[int]:
        for node in tree.nodes():
            chain = self._child_chain(tree, node, result)
            if len(chain) != node.child_count:
                self._structural(
                    result,
                    f"Node {node.id} has child_count {node.child_count} "
                    f"but {len(chain)} linked children",
                    node.id,
                )
            for child in chain:
                if child.parent != node.handle:
                    self._structural(
                        result,
                        f"Node {child.id} is linked below {node.id} "
                        f"but points to parent {child.parent}",
                        child.id,
                    )

        reachable: Set[int] = set()
        root = tree.root
        if root is None:
            return reachable
        if root.parent is not None:
            self._structural(result, f"Root node {root.id} has a parent", root.id)

        stack = [root]
        while stack:
            node = stack.pop()
            if node.handle in reachable:
                self._structural(result, f"Node {node.id} is reachable twice", node.id)
                continue
            reachable.add(node.handle)
            for child in self._child_chain(tree, node, ValidationResult()):
                stack.append(child)

        for node in tree.nodes():
            if node.handle not in reachable:
                self._structural(
                    result, f"Node {node.id} is not reachable from the root", node.id
                )
        return reachable

    def _check_sizes(
        self,
        tree: TreeContainer[ProofNode],
        reachable: Set[int],
        result: ValidationResult,
    ) -> None:
        root = tree.root
        # A zero size means the tree was never aggregated
        if root is None or root.subtree_size == 0:
            return
        if root.subtree_size != len(reachable):
            result.issues.append(ValidationIssue(
                ValidationIssueType.SIZE,
                DiagnosticSeverity.ERROR,
                f"Root tree_size {root.subtree_size} differs from "
                f"{len(reachable)} reachable nodes",
                root.id,
            ))

    def _check_proofs(
        self,
        tree: TreeContainer[ProofNode],
        reachable: Set[int],
        result: ValidationResult,
    ) -> None:
        severity = (
            DiagnosticSeverity.ERROR
            if self.validation_level is ValidationLevel.STRICT
            else DiagnosticSeverity.WARNING
        )
        for handle in sorted(reachable):
            node = tree.get(handle)
            if not node.solved or node.is_leaf:
                continue
            children = self._child_chain(tree, node, ValidationResult())
            if node.kind is NodeKind.AND and not all(child.solved for child in children):
                result.issues.append(ValidationIssue(
                    ValidationIssueType.PROOF,
                    severity,
                    f"Solved AND node {node.id} has unsolved children",
                    node.id,
                ))
            elif (
                node.kind is NodeKind.OR
                and not node.matched_transposition
                and not any(child.solved for child in children)
            ):
                result.issues.append(ValidationIssue(
                    ValidationIssueType.PROOF,
                    severity,
                    f"Solved OR node {node.id} has no solved child",
                    node.id,
                ))
