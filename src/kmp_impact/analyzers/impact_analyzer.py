"""Impact Analyzer - Orchestrates scanning, extraction, graph building and impact calculation."""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import psutil

from ..core.errors import AnalysisCancelledError, AnalysisWarning, ImpactAnalysisError, MissingInputError
from ..core.source_files import SHARED_PLATFORM, ScanResult, SourceScanner
from ..platforms.project_detector import DetectedRoots
from ..platforms.registry import PlatformRegistry, default_registry
from .impact_calculator import ImpactCalculator, ImpactResult
from .import_graph_builder import DependencyGraph, ImportGraphBuilder
from .symbol_extractor import SymbolExtractor, SymbolTable
from .usage_analyzer import Reference, UsageAnalyzer

logger = logging.getLogger(__name__)

PHASES = (
    "scanning",
    "symbol_extraction",
    "dependency_graphs",
    "usage_detection",
    "impact_calculation",
)


@dataclass
class AnalysisConfiguration:
    """Configuration for impact analysis."""
    max_workers: Optional[int] = None
    interop_modules: Sequence[str] = ()
    follow_symlinks: bool = False

    @property
    def workers(self) -> int:
        return self.max_workers or os.cpu_count() or 4


@dataclass
class AnalysisInput:
    """Roots handed over by project detection or given explicitly."""
    shared_roots: List[Path] = field(default_factory=list)
    platform_roots: Dict[str, List[Path]] = field(default_factory=dict)

    @classmethod
    def from_detected(cls, detected: DetectedRoots) -> "AnalysisInput":
        return cls(
            shared_roots=list(detected.shared_roots),
            platform_roots={name: list(roots) for name, roots in detected.platform_roots.items()},
        )

    def validate(self, registry: PlatformRegistry):
        if not self.shared_roots:
            raise MissingInputError("shared module roots", "pass --shared-root or run inside a KMP project")

        application = [p.name for p in registry.application_platforms()]
        unknown = sorted(set(self.platform_roots) - set(application))
        if unknown:
            raise ImpactAnalysisError(f"Unknown platform(s): {', '.join(unknown)}")

        if not any(self.platform_roots.get(name) for name in application):
            raise MissingInputError("application roots", f"expected roots for one of: {', '.join(application)}")


@dataclass
class AnalysisProgress:
    """Tracks progress through analysis phases."""
    current_phase: str
    completed_phases: List[str]
    total_phases: int
    start_time: float
    phase_start_time: float
    phase_timings: Dict[str, float] = field(default_factory=dict)

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def phase_elapsed_time(self) -> float:
        return time.time() - self.phase_start_time


@dataclass
class AnalysisRun:
    """Complete outcome of one analysis run."""
    result: ImpactResult
    symbol_table: SymbolTable
    references: List[Reference]
    graphs: Dict[str, DependencyGraph]
    warnings: List[AnalysisWarning]
    progress: AnalysisProgress
    performance_metrics: Dict[str, Any]
    scan: Optional[ScanResult] = None


class ImpactAnalyzer:
    """Main orchestrator for KMP impact analysis."""

    def __init__(self, configuration: Optional[AnalysisConfiguration] = None,
                 registry: Optional[PlatformRegistry] = None):
        self.config = configuration or AnalysisConfiguration()
        self.registry = registry or default_registry(self.config.interop_modules)

        self.symbol_extractor = SymbolExtractor(max_workers=self.config.workers)
        self.graph_builder = ImportGraphBuilder(self.registry.interop_patterns())
        self.calculator = ImpactCalculator(self.registry.display_names())

        self._progress: Optional[AnalysisProgress] = None
        self._cancelled = threading.Event()
        self._peak_rss = 0

    def cancel(self):
        """Request cancellation; honoured at the next phase boundary."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def analyze(self, analysis_input: AnalysisInput) -> AnalysisRun:
        """Run every phase; raises instead of returning partial results."""
        analysis_input.validate(self.registry)

        start_time = time.time()
        self._peak_rss = 0
        self._progress = AnalysisProgress(
            current_phase="initialization",
            completed_phases=[],
            total_phases=len(PHASES),
            start_time=start_time,
            phase_start_time=start_time,
        )

        # Phase 1: read every source file once
        self._update_progress("scanning")
        scanner = SourceScanner(
            self.registry.extensions_by_platform(),
            max_workers=self.config.workers,
            follow_symlinks=self.config.follow_symlinks,
        )
        scan = scanner.scan(self._roots_by_platform(analysis_input))
        application_files = scan.application_files()

        # Phases 2 and 3: independent, run side by side
        self._update_progress("symbol_extraction")
        with ThreadPoolExecutor(max_workers=2) as executor:
            symbols_future = executor.submit(self.symbol_extractor.extract, scan.shared_files)
            graphs_future = executor.submit(self.graph_builder.build_graphs, application_files)
            symbol_table = symbols_future.result()
            self._update_progress("dependency_graphs")
            graphs = graphs_future.result()

        # Phase 4: references against the finished, read-only symbol table
        self._update_progress("usage_detection")
        usage_analyzer = UsageAnalyzer(
            symbol_table,
            interop_patterns=self.registry.interop_patterns(),
            max_workers=self.config.workers,
        )
        all_application_files = [f for files in application_files.values() for f in files]
        usage = usage_analyzer.analyze_usages(all_application_files)

        # Phase 5
        self._update_progress("impact_calculation")
        result = self.calculator.calculate(symbol_table, usage.references, graphs, application_files)

        self._update_progress("complete")
        return AnalysisRun(
            result=result,
            symbol_table=symbol_table,
            references=usage.references,
            graphs=graphs,
            warnings=list(scan.warnings),
            progress=self._progress,
            performance_metrics=self._calculate_performance_metrics(start_time, scan),
            scan=scan,
        )

    def _roots_by_platform(self, analysis_input: AnalysisInput) -> Dict[str, List[Path]]:
        roots = {SHARED_PLATFORM: list(analysis_input.shared_roots)}
        for platform in self.registry.application_platforms():
            roots[platform.name] = list(analysis_input.platform_roots.get(platform.name, []))
        return roots

    def _update_progress(self, phase: str):
        """Close the current phase and enter the next one, unless cancelled."""
        if phase != "complete" and self.cancelled:
            raise AnalysisCancelledError(phase)

        now = time.time()
        progress = self._progress
        if progress.current_phase != "initialization":
            progress.completed_phases.append(progress.current_phase)
            progress.phase_timings[progress.current_phase] = now - progress.phase_start_time
        progress.current_phase = phase
        progress.phase_start_time = now
        self._sample_memory()
        logger.debug("Entering phase %s after %.3fs", phase, progress.elapsed_time)

    def _sample_memory(self):
        rss = psutil.Process().memory_info().rss
        self._peak_rss = max(self._peak_rss, rss)

    def _calculate_performance_metrics(self, start_time: float, scan: ScanResult) -> Dict[str, Any]:
        """Calculate performance metrics for the analysis."""
        files_scanned = sum(len(files) for files in scan.files_by_platform.values())
        return {
            'total_analysis_time': time.time() - start_time,
            'phases_completed': len(self._progress.completed_phases),
            'files_scanned': files_scanned,
            'peak_memory_mb': self._peak_rss / (1024 * 1024),
            'phase_timings': dict(self._progress.phase_timings),
        }

    def get_analysis_status(self) -> Optional[AnalysisProgress]:
        """Get current analysis progress."""
        return self._progress
