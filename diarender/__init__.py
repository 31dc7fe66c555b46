"""
Dia diagram export cache.

Exports .dia diagrams to PNG at several pixel densities, once per
(diagram, size) key under concurrent access, and re-exports only when the
source changes.
"""

__version__ = "1.0.0"

from .exceptions import RenderError, SourceNotFound, ConversionError, RenderInterrupted
from .staleness import TIMESTAMP_TOLERANCE, is_stale
from .success_criteria import SuccessCriterion, TrustExitCode, VerifyDiagnosticText, detect_success_criterion
from .sources import SourceArtifact, BookSourceStore
from .converter import DiaConverter, DiaExport
from .cache_keys import CacheKey, derive_key, encode_address, decode_address
from .cache_store import CacheStore
from .single_flight import SingleFlight
from .render_config import RenderConfig
from .renderer import DiagramRenderer
from .render_stats import RenderStats
from .pregen import Pregenerator

__all__ = [
    "RenderError",
    "SourceNotFound",
    "ConversionError",
    "RenderInterrupted",
    "TIMESTAMP_TOLERANCE",
    "is_stale",
    "SuccessCriterion",
    "TrustExitCode",
    "VerifyDiagnosticText",
    "detect_success_criterion",
    "SourceArtifact",
    "BookSourceStore",
    "DiaConverter",
    "DiaExport",
    "CacheKey",
    "derive_key",
    "encode_address",
    "decode_address",
    "CacheStore",
    "SingleFlight",
    "RenderConfig",
    "DiagramRenderer",
    "RenderStats",
    "Pregenerator",
]
