"""Loading API for SGF proof trees.

Three levels of entry point are provided:

* :func:`load_from_text` / :func:`load_from_path` parse, aggregate and return
  a :class:`ProofTree`, raising :class:`SGFError` subclasses on bad input;
* :func:`iter_nodes` yields completed nodes one at a time without building
  sizes, for streaming consumers;
* :func:`load` accepts text, paths, bytes, file objects or character streams
  and never raises: failures are reported through :class:`LoadResult`.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, TextIO, Tuple, Union

from sgf_proof_tree.character import (
    CharacterStream,
    EncodingDetector,
    FileCharacterStream,
    ProgressCallback,
    StringCharacterStream,
)
from sgf_proof_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    ProofTreeConfig,
    SGFError,
    StructuralError,
    get_logger,
)
from sgf_proof_tree.tree import NodeKind, ProofNode, ProofTree, SGFParseEngine

# Type definitions for input data
SourceType = Union[str, bytes, Path, TextIO, BinaryIO, CharacterStream]

MS_PER_SECOND = 1000


@dataclass
class LoadResult:
    """Outcome of :func:`load`; carries either a tree or the error."""

    success: bool = False
    tree: Optional[ProofTree] = None
    error: Optional[BaseException] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    source_name: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def error_message(self) -> Optional[str]:
        return None if self.error is None else str(self.error)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        span: Optional[Tuple[int, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add a diagnostic entry to the result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            span=span,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get all diagnostics of a specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if any error or critical diagnostics exist."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the load result."""
        summary: Dict[str, Any] = {
            "source": self.source_name,
            "success": self.success,
            "error": self.error_message,
            "performance": self.performance.to_dict(),
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if self.tree is not None:
            summary["tree"] = self.tree.summary()
        return summary


def _node_kinds(config: ProofTreeConfig) -> Tuple[NodeKind, NodeKind]:
    return NodeKind[config.loader.black_kind], NodeKind[config.loader.white_kind]


def _new_tree(config: ProofTreeConfig, correlation_id: Optional[str]) -> ProofTree:
    black_kind, white_kind = _node_kinds(config)
    return ProofTree(
        black_kind=black_kind,
        white_kind=white_kind,
        max_nodes=config.tree.max_nodes,
        correlation_id=correlation_id,
    )


def _new_engine(
    stream: CharacterStream,
    tree: ProofTree,
    config: ProofTreeConfig,
    progress_callback: Optional[ProgressCallback],
    correlation_id: Optional[str],
) -> SGFParseEngine[ProofNode]:
    return SGFParseEngine(
        stream,
        tree,
        progress_callback=progress_callback if config.tokenizer.enable_progress else None,
        total_length=config.tokenizer.progress_total,
        correlation_id=correlation_id,
    )


def _parse_stream(
    stream: CharacterStream,
    config: ProofTreeConfig,
    progress_callback: Optional[ProgressCallback],
    correlation_id: Optional[str],
) -> Tuple[ProofTree, SGFParseEngine[ProofNode]]:
    """Parse ``stream`` into a new tree and aggregate it.

    The partially built tree is released when parsing fails.
    """
    logger = get_logger(__name__, correlation_id, "loader")
    tree = _new_tree(config, correlation_id)
    engine = _new_engine(stream, tree, config, progress_callback, correlation_id)

    try:
        root = engine.parse_all()
        if root is None:
            raise StructuralError("Missing game tree", 0, 0)
    except SGFError as e:
        tree.reset()
        source = stream.source_text
        if config.errors.detailed and source:
            raise e.with_context(
                source,
                window=config.errors.context_window,
                highlight_start=config.errors.highlight_start,
                highlight_end=config.errors.highlight_end,
            ) from e
        raise
    except MemoryError:
        tree.reset()
        raise

    tree.root = root
    if config.loader.run_aggregation:
        stats = tree.aggregate()
        if stats.max_depth > config.tree.max_depth_warning:
            logger.warning(
                "Proof tree is unusually deep",
                extra={
                    "max_depth": stats.max_depth,
                    "max_depth_warning": config.tree.max_depth_warning,
                },
            )
    logger.debug(
        "Proof tree loaded",
        extra={
            "node_count": tree.node_count,
            "tokens_generated": engine.tokenizer.tokens_generated,
        },
    )
    return tree, engine


def load_from_text(
    text: str,
    config: Optional[ProofTreeConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
    correlation_id: Optional[str] = None,
) -> ProofTree:
    """Parse SGF text into an aggregated proof tree.

    Args:
        text: SGF document containing exactly one game tree
        config: Loading configuration (defaults apply when omitted)
        progress_callback: Receives ``(offset, total)`` after each token
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ProofTree whose root carries the whole-tree sizes

    Raises:
        LexicalError: On invalid characters or an unterminated value
        StructuralError: On grammar violations or a missing game tree
        MalformedProofDataError: On inconsistent proof properties
        NodeAllocationError: When the node limit is exceeded

    Examples:
        >>> tree = load_from_text("(;B[aa]C[solver_status: WIN];W[bb])")
        >>> tree.root.subtree_size, tree.root.proof_size
        (2, 1)
    """
    config = config or ProofTreeConfig()
    correlation_id = correlation_id or config.global_.correlation_id
    tree, _ = _parse_stream(
        StringCharacterStream(text), config, progress_callback, correlation_id
    )
    return tree


def load_from_path(
    path: Union[str, Path],
    config: Optional[ProofTreeConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
    correlation_id: Optional[str] = None,
) -> ProofTree:
    """Read and parse an SGF file into an aggregated proof tree.

    The file is opened before any tokenizing, so an unreadable path raises
    ``OSError`` without partial work. Error offsets refer to the decoded
    text.

    Raises:
        OSError: If the file cannot be opened
        SGFError: As for :func:`load_from_text`
    """
    config = config or ProofTreeConfig()
    correlation_id = correlation_id or config.global_.correlation_id
    with FileCharacterStream(path, config.stream, correlation_id) as stream:
        tree, _ = _parse_stream(stream, config, progress_callback, correlation_id)
    return tree


def iter_nodes(
    source: Union[str, CharacterStream],
    config: Optional[ProofTreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[ProofNode]:
    """Yield completed nodes in document order without aggregating.

    Args:
        source: SGF text or a character stream
        config: Loading configuration
        correlation_id: Optional correlation ID for request tracking

    Examples:
        >>> [node.kind.label for node in iter_nodes("(;B[aa];W[bb])")]
        ['OR', 'AND']
    """
    config = config or ProofTreeConfig()
    correlation_id = correlation_id or config.global_.correlation_id
    stream = StringCharacterStream(source) if isinstance(source, str) else source
    tree = _new_tree(config, correlation_id)
    yield from _new_engine(stream, tree, config, None, correlation_id)


def _open_source(
    source: SourceType, config: ProofTreeConfig, correlation_id: Optional[str]
) -> Tuple[CharacterStream, str]:
    """Turn any supported input into a character stream and a display name."""
    if isinstance(source, CharacterStream):
        return source, type(source).__name__
    if isinstance(source, Path):
        return FileCharacterStream(source, config.stream, correlation_id), str(source)
    if isinstance(source, str):
        return StringCharacterStream(source), "<string>"

    if hasattr(source, "read"):
        data = source.read()
        name = str(getattr(source, "name", "<stream>"))
    else:
        data = source
        name = "<bytes>"
    if isinstance(data, bytes):
        detector = EncodingDetector(
            fallback_encoding=config.stream.fallback_encoding,
            detect_bom=config.stream.detect_bom,
        )
        data, _ = detector.decode(data, config.stream.encoding)
    return StringCharacterStream(data), name


def load(
    source: SourceType,
    config: Optional[ProofTreeConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
    correlation_id: Optional[str] = None,
) -> LoadResult:
    """Load a proof tree from any supported input without raising.

    Args:
        source: SGF text, bytes, a ``Path``, a file object or a stream
        config: Loading configuration
        progress_callback: Receives ``(offset, total)`` after each token
        correlation_id: Optional correlation ID for request tracking

    Returns:
        LoadResult with the tree on success, or the error and a diagnostic
        describing it

    Examples:
        >>> result = load("(;B[aa]")
        >>> result.success
        False
        >>> result.error_message
        'Unmatched left parenthesis at 0:1'
    """
    start_time = time.time()
    config = config or ProofTreeConfig()
    correlation_id = correlation_id or config.global_.correlation_id
    logger = get_logger(__name__, correlation_id, "load")
    result = LoadResult(correlation_id=correlation_id)
    stream: Optional[CharacterStream] = None

    try:
        stream, result.source_name = _open_source(source, config, correlation_id)
        result.performance.characters_processed = stream.length
        tree, engine = _parse_stream(stream, config, progress_callback, correlation_id)
    except SGFError as e:
        result.error = e
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            e.message,
            type(e).__name__,
            span=e.span,
        )
    except OSError as e:
        result.error = e
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            f"Cannot read source: {e}",
            "loader",
            details={"source": str(source)},
        )
    except MemoryError as e:
        result.error = e
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL, str(e) or "Out of memory", "tree_container"
        )
    except Exception as e:
        # Never-fail guarantee
        logger.exception("Load operation failed")
        result.error = e
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            f"Load operation failed: {e}",
            "loader",
        )
    else:
        result.success = True
        result.tree = tree
        result.performance.tokens_generated = engine.tokenizer.tokens_generated
        result.performance.nodes_created = engine.nodes_created
        if tree.aggregation_stats and tree.aggregation_stats.transposition_fallbacks:
            result.add_diagnostic(
                DiagnosticSeverity.INFO,
                "Solved nodes without contributing children were sized as leaves",
                "aggregation",
                details={
                    "transposition_fallbacks": tree.aggregation_stats.transposition_fallbacks
                },
            )
    finally:
        # Only file streams opened here are closed
        if isinstance(stream, FileCharacterStream) and stream is not source:
            stream.close()

    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    logger.info(
        "Load operation completed",
        extra={
            "source": result.source_name,
            "success": result.success,
            "processing_time_ms": result.performance.processing_time_ms,
        },
    )
    return result
