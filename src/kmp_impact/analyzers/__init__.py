"""Symbol extraction, usage detection, dependency graphs and impact calculation."""

from .symbol_extractor import (
    SymbolExtractor, Symbol, SymbolKind, SymbolTable, DECLARATION_PATTERNS
)
from .usage_analyzer import UsageAnalyzer, UsageAnalysis, Reference
from .import_graph_builder import (
    ImportGraphBuilder, DependencyGraph, ImportEdge, ImportStatement
)
from .impact_calculator import (
    ImpactCalculator, ImpactResult, PlatformImpact, SymbolUsage, impact_ratio
)
from .impact_analyzer import (
    ImpactAnalyzer, AnalysisConfiguration, AnalysisInput, AnalysisProgress,
    AnalysisRun, PHASES
)

__all__ = [
    "SymbolExtractor", "Symbol", "SymbolKind", "SymbolTable", "DECLARATION_PATTERNS",
    "UsageAnalyzer", "UsageAnalysis", "Reference",
    "ImportGraphBuilder", "DependencyGraph", "ImportEdge", "ImportStatement",
    "ImpactCalculator", "ImpactResult", "PlatformImpact", "SymbolUsage", "impact_ratio",
    "ImpactAnalyzer", "AnalysisConfiguration", "AnalysisInput", "AnalysisProgress",
    "AnalysisRun", "PHASES"
]
