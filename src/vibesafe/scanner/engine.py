"""Scan engine — orchestrates discovery, detectors and dependency lookups."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path

from vibesafe.config import VibeSafeConfig
from vibesafe.policy.evaluator import PolicyEvaluator
from vibesafe.policy.models import Policy
from vibesafe.scanner.aggregator import (
    FindingAggregator,
    exit_code,
    filter_findings,
    summarize,
)
from vibesafe.scanner.dependencies.manifests import parse_manifests
from vibesafe.scanner.dependencies.osv import OSVClient
from vibesafe.scanner.dependencies.resolver import DependencyResolver, Resolution
from vibesafe.scanner.detectors.configuration import scan_configuration
from vibesafe.scanner.detectors.endpoints import scan_endpoints
from vibesafe.scanner.detectors.error_logging import scan_logging
from vibesafe.scanner.detectors.http_client import scan_http_clients
from vibesafe.scanner.detectors.rate_limit import check_rate_limiting
from vibesafe.scanner.detectors.secrets import scan_secrets
from vibesafe.scanner.detectors.uploads import scan_uploads
from vibesafe.scanner.discovery import IgnoreRuleSet, check_gitignore, discover_files
from vibesafe.scanner.models import DependencyRecord, Finding, ScanResult
from vibesafe.scanner.technologies import DetectedTechnologies, detect_technologies

logger = logging.getLogger(__name__)

Detector = Callable[[str, str, DetectedTechnologies], list]

# Per-file detectors after the secret scan, run in this order for every file
_FILE_DETECTORS: tuple[Detector, ...] = (
    scan_configuration,
    scan_uploads,
    scan_endpoints,
    scan_http_clients,
    scan_logging,
)


class ScanEngine:
    """Orchestrates static security analysis across a directory."""

    def __init__(
        self,
        config: VibeSafeConfig | None = None,
        policy: Policy | None = None,
        exclude_patterns: list[str] | None = None,
        resolver: DependencyResolver | None = None,
    ) -> None:
        self._config = config or VibeSafeConfig()
        self._policy = policy
        self._evaluator = PolicyEvaluator(policy) if policy else None
        self._exclude = list(exclude_patterns or [])
        self._resolver = resolver
        self._detectors: tuple[Detector, ...] = (
            partial(
                scan_secrets,
                entropy_threshold=self._config.entropy_threshold,
                min_entropy_length=self._config.min_entropy_length,
            ),
            *_FILE_DETECTORS,
        )

    def scan(self, directory: str | Path) -> ScanResult:
        """Scan a directory and return aggregated results."""
        directory = Path(directory).resolve()
        start = time.time()

        result = ScanResult(
            directory=str(directory),
            policy_name=self._policy.name if self._policy else "",
        )

        rules = IgnoreRuleSet.for_root(
            directory,
            extra_patterns=self._exclude,
            respect_gitignore=self._config.respect_gitignore,
        )
        files = discover_files(directory, rules)
        dependencies = parse_manifests(files, directory)
        tech = detect_technologies(dep.name for dep in dependencies)
        logger.debug("Detected technologies: %s", tech)

        aggregator = FindingAggregator()
        aggregator.add(check_gitignore(directory))

        with ThreadPoolExecutor(max_workers=self._config.max_workers) as executor:
            # Network-bound; must not hold up the file detectors
            resolution: Future[Resolution] | None = None
            if dependencies:
                resolution = executor.submit(self._resolve, dependencies)
            rate_limit = executor.submit(check_rate_limiting, dependencies, files, tech, directory)

            outcomes = executor.map(lambda path: self._scan_file(path, directory, tech), files)
            for findings in outcomes:
                if findings is None:
                    result.files_skipped += 1
                    continue
                result.files_scanned += 1
                aggregator.add(findings)

            aggregator.add(rate_limit.result())
            if resolution is not None:
                resolved = resolution.result()
                aggregator.add(resolved.findings)
                result.dependencies_checked = resolved.dependencies_checked
                result.integrity_faults.extend(resolved.integrity_faults)

        findings = filter_findings(aggregator.collect(), self._evaluator)
        result.findings = findings
        result.summary = summarize(findings)
        result.exit_code = exit_code(findings, self._evaluator)
        result.duration = time.time() - start
        return result

    def _scan_file(
        self,
        path: Path,
        root: Path,
        tech: DetectedTechnologies,
    ) -> list[Finding] | None:
        """Run every detector on one file. None means the file was skipped."""
        try:
            if path.stat().st_size > self._config.max_file_size:
                logger.debug("Skipping %s: larger than %d bytes", path, self._config.max_file_size)
                return None
            content = path.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.debug("Skipping %s: %s", path, e)
            return None

        rel_path = path.relative_to(root).as_posix()
        findings: list[Finding] = []
        for detector in self._detectors:
            try:
                findings.extend(detector(rel_path, content, tech))
            except Exception:
                # Contain the failure to this detector and file
                logger.debug("Detector %s failed on %s", _detector_name(detector), rel_path, exc_info=True)
        return findings

    def _resolve(self, dependencies: list[DependencyRecord]) -> Resolution:
        if self._resolver is not None:
            return self._resolver.resolve(dependencies)
        if self._config.offline:
            logger.info("Offline mode: skipping vulnerability lookup for %d dependencies", len(dependencies))
            return Resolution()

        with OSVClient(
            base_url=self._config.osv_url,
            timeout=self._config.osv_timeout,
            batch_size=self._config.osv_batch_size,
        ) as client:
            resolver = DependencyResolver(client, hydrate=self._config.hydrate_vulnerabilities)
            return resolver.resolve(dependencies)


def _detector_name(detector: Detector) -> str:
    func = detector.func if isinstance(detector, partial) else detector
    return getattr(func, "__name__", repr(func))
