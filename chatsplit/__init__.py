"""chatsplit - Split copy-pasted AI chat transcripts into attributed turns."""

__version__ = "0.1.0"

from chatsplit.models import AnalysisResult, Role, Turn, TurnGroup
from chatsplit.pipeline import AnalysisInvariantError, AnalyzerConfig, analyze, analyze_with_trace

__all__ = [
    "__version__",
    "analyze",
    "analyze_with_trace",
    "AnalyzerConfig",
    "AnalysisInvariantError",
    "AnalysisResult",
    "Turn",
    "TurnGroup",
    "Role",
]
