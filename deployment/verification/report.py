"""
Acceptance report model.

Dependencies: None
System role: Aggregates smoke check results for CLI output and exit codes
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one smoke check."""

    kind: str
    name: str
    target: str
    passed: bool
    detail: str = ""
    elapsed_ms: float = 0.0


@dataclass
class AcceptanceReport:
    """All smoke check results of one verification run."""

    results: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when every check passed. An empty report does not pass."""
        return bool(self.results) and all(result.passed for result in self.results)

    @property
    def failures(self) -> list[CheckResult]:
        return [result for result in self.results if not result.passed]

    def extend(self, results: list[CheckResult]) -> None:
        self.results.extend(results)

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "total": len(self.results),
            "failed": len(self.failures),
            "results": [asdict(result) for result in self.results],
        }

    def render_text(self) -> str:
        lines = []
        for result in self.results:
            status = "PASS" if result.passed else "FAIL"
            line = f"[{status}] {result.kind:<6} {result.name:<24} {result.target}"
            if result.detail:
                line += f" ({result.detail})"
            lines.append(line)
        summary = "all checks passed" if self.passed else f"{len(self.failures)} of {len(self.results)} checks failed"
        if not self.results:
            summary = "no checks were run"
        lines.append(summary)
        return "\n".join(lines)
