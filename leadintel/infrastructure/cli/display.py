"""Console rendering of service results with the rich library."""

import logging
from typing import Any, Dict, List, Optional

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from leadintel.domain.models.analysis import ConversationAnalysis
from leadintel.domain.models.leads import ScoredLead, VoiceCommandResult
from leadintel.infrastructure.monitoring.metrics import MetricsSnapshot

logger = logging.getLogger(__name__)

SENTIMENT_STYLES = {"positive": "bold green", "negative": "bold red", "neutral": "bold yellow"}
HEALTH_STYLES = {"healthy": "bold green", "degraded": "bold yellow", "unhealthy": "bold red"}
GRADE_STYLES = {"A": "green", "B": "cyan", "C": "yellow", "D": "red"}


class ConsoleDisplay:
    """Renders analyses, scores, health and metrics to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_info(self, message: str) -> None:
        self._console.print(f"[cyan]{message}[/cyan]")

    def display_error(self, message: str) -> None:
        self._console.print(Panel(Text(message, style="red"), title="Error", border_style="red", box=ROUNDED))

    def _bullet_table(self, title: str, items: List[str]) -> Table:
        table = Table(title=title, box=SIMPLE, show_header=False, title_justify="left")
        table.add_column("item")
        for item in items or ["(none)"]:
            table.add_row(f"• {item}")
        return table

    def display_analysis(self, analysis: ConversationAnalysis) -> None:
        """Renders a conversation analysis as a summary panel and tables."""
        sentiment = analysis.sentiment
        intent = analysis.intent
        summary = Text()
        summary.append("Sentiment: ")
        summary.append(sentiment.overall, style=SENTIMENT_STYLES.get(sentiment.overall, "bold"))
        summary.append(f"  (score {sentiment.score:+.2f}, confidence {sentiment.confidence:.0%})\n")
        summary.append(f"Intent: {intent.primary_intent} ({intent.confidence:.0%}), urgency {intent.urgency}\n")
        summary.append(f"Topics: {', '.join(analysis.topics.main_topics) or '(none)'}")
        entities = analysis.topics.entities
        if entities.people or entities.organizations:
            summary.append(f"\nPeople: {', '.join(entities.people) or '-'}")
            summary.append(f"\nOrganizations: {', '.join(entities.organizations) or '-'}")
        self._console.print(Panel(summary, title="Conversation Analysis", border_style="blue", box=ROUNDED))

        signals = Table(title="Buying Signals", box=ROUNDED)
        signals.add_column("Type", style="cyan")
        signals.add_column("Confidence", justify="right")
        signals.add_column("Evidence")
        for signal in analysis.buying_signals:
            signals.add_row(signal.type, f"{signal.confidence:.0%}", signal.evidence)
        if analysis.buying_signals:
            self._console.print(signals)

        self._console.print(self._bullet_table("Recommendations", list(analysis.recommendations)))
        self._console.print(self._bullet_table("Risk Flags", list(analysis.risk_flags)))
        self._console.print(self._bullet_table("Next Best Actions", list(analysis.next_best_actions)))

    def display_voice_command(self, result: VoiceCommandResult) -> None:
        table = Table(title=f"Voice Command: {result.intent} ({result.confidence:.0%})", box=ROUNDED)
        table.add_column("Entity", style="cyan")
        table.add_column("Value")
        for key, value in result.entities.items():
            table.add_row(key, value)
        self._console.print(table)

    def display_scored_leads(self, leads: List[ScoredLead]) -> None:
        table = Table(title="Lead Scores", box=ROUNDED)
        table.add_column("Lead", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Grade", justify="center")
        table.add_column("Confidence", justify="right")
        table.add_column("Factors")
        for lead in leads:
            table.add_row(
                str(lead.lead_id),
                f"{lead.score:.0f}",
                Text(lead.grade, style=GRADE_STYLES.get(lead.grade, "")),
                f"{lead.confidence:.0%}",
                ", ".join(lead.factors),
            )
        self._console.print(table)

    def display_health(self, health: Dict[str, Any]) -> None:
        status = health["status"]
        table = Table(box=SIMPLE, show_header=False)
        table.add_column("key", style="cyan")
        table.add_column("value")
        for key, value in health.get("details", {}).items():
            table.add_row(key, "-" if value is None else str(value))
        self._console.print(Panel(
            table,
            title=Text(f"Service {status}", style=HEALTH_STYLES.get(status, "bold")),
            box=ROUNDED,
        ))

    def display_metrics(self, snapshot: MetricsSnapshot, rate_limit: Dict[str, Any], cache: Dict[str, Any]) -> None:
        table = Table(title="AI Service Metrics", box=ROUNDED)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        rows = [
            ("Total requests", snapshot.total_requests),
            ("Successful", snapshot.successful_requests),
            ("Failed", snapshot.failed_requests),
            ("Rate limited", snapshot.rate_limited_requests),
            ("Tokens used", snapshot.tokens_used),
            ("Avg response (ms)", f"{snapshot.average_response_time_ms:.1f}"),
            ("p50 / p95 (ms)", f"{snapshot.p50_latency_ms:.1f} / {snapshot.p95_latency_ms:.1f}"),
            ("Cache hit rate", f"{snapshot.cache_hit_rate:.0%}"),
            ("Error rate", f"{snapshot.error_rate:.0%}"),
            ("Window requests", f"{rate_limit['request_count']} / {rate_limit['requests_per_minute']}"),
            ("Window tokens", f"{rate_limit['token_count']} / {rate_limit['tokens_per_minute']}"),
            ("Cache size", f"{cache.get('size', 0)} / {cache.get('max_items', '-')}"),
        ]
        for name, value in rows:
            table.add_row(name, str(value))
        self._console.print(table)
