"""Main entry point for the leadintel application.

Sets up the Typer CLI application, performs dependency injection (Composition
Root) and defines the CLI commands, each of which delegates to one
AIServiceOrchestrator operation.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

from leadintel.core.exceptions import AIServiceError, ConfigurationError
from leadintel.core.orchestrator import AIServiceOrchestrator
from leadintel.domain.interfaces.outbound_caller import OutboundCaller
from leadintel.infrastructure.ai.groq.groq_client import GroqOutboundCaller
from leadintel.infrastructure.ai.offline.offline_caller import OfflineOutboundCaller
from leadintel.infrastructure.ai.openai.gpt_client import OpenAIOutboundCaller
from leadintel.infrastructure.cli.display import ConsoleDisplay
from leadintel.infrastructure.config.settings import (
    AIServiceConfig,
    get_groq_api_key,
    get_openai_api_key,
    load_service_config,
)
from leadintel.infrastructure.filesystem.local_fs import LocalFileSystem
from leadintel.infrastructure.monitoring.logger_setup import setup_logging
from leadintel.infrastructure.optimization.token_estimator import TokenEstimator

logger = logging.getLogger(__name__)


# --- Composition Root ---

def create_outbound_caller(config: AIServiceConfig) -> OutboundCaller:
    """Picks the provider adapter: the configured one if its key exists, else any keyed one, else offline."""
    name = config.provider.name
    openai_key = get_openai_api_key()
    groq_key = get_groq_api_key()

    if name == "openai" and openai_key:
        return OpenAIOutboundCaller(api_key=openai_key, model=config.provider.model)
    if name == "groq" and groq_key:
        return GroqOutboundCaller(api_key=groq_key, model=config.provider.model)
    if name != "offline":
        if openai_key:
            return OpenAIOutboundCaller(api_key=openai_key)
        if groq_key:
            return GroqOutboundCaller(api_key=groq_key)
        logger.warning(f"No API key found for provider '{name}'. Using the offline rule-based caller.")
    return OfflineOutboundCaller()


def create_orchestrator(config: Optional[AIServiceConfig] = None) -> AIServiceOrchestrator:
    """Builds a fully wired orchestrator from configuration."""
    config = config or load_service_config()
    caller = create_outbound_caller(config)
    # The offline caller never sends tokens anywhere; skip loading a tokenizer.
    estimator = TokenEstimator(approximate=isinstance(caller, OfflineOutboundCaller))
    return AIServiceOrchestrator(outbound_caller=caller, config=config, token_estimator=estimator)


_dependencies: Dict[str, Any] = {}


def get_dependencies() -> Dict[str, Any]:
    """Creates the service instances on first use."""
    if not _dependencies:
        _dependencies["ui"] = ConsoleDisplay()
        _dependencies["fs"] = LocalFileSystem()
        _dependencies["orchestrator"] = create_orchestrator()
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="leadintel",
    help="leadintel: AI-assisted lead scoring and conversation intelligence.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs a coroutine from a sync Typer command, reporting service errors."""
    try:
        return asyncio.run(coro)
    except (AIServiceError, ValueError, FileNotFoundError, PermissionError) as e:
        logger.debug(f"Command failed: {type(e).__name__}: {e}")
        ConsoleDisplay().display_error(f"{type(e).__name__}: {e}")
        raise typer.Exit(code=1)


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


JsonOption = Annotated[bool, typer.Option("--json", help="Print the result as JSON.")]


@app.command()
def analyze(
    text: Annotated[Optional[str], typer.Argument(help="Conversation text to analyze.")] = None,
    file: Annotated[Optional[Path], typer.Option(
        "--file", "-f", exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
        help="Read the conversation transcript from a file.",
    )] = None,
    as_json: JsonOption = False,
):
    """Analyze a sales conversation for sentiment, intent and buying signals."""
    if (text is None) == (file is None):
        ConsoleDisplay().display_error("Provide either TEXT or --file, not both.")
        raise typer.Exit(code=2)
    deps = get_dependencies()

    async def _analyze():
        content = text if file is None else await deps["fs"].read_file(file)
        return await deps["orchestrator"].analyze_conversation(content)

    analysis = run_async(_analyze())
    if as_json:
        _print_json(analysis.to_dict())
    else:
        deps["ui"].display_analysis(analysis)


@app.command()
def voice(
    text: Annotated[str, typer.Argument(help="Transcribed voice command.")],
    user: Annotated[str, typer.Option("--user", "-u", help="ID of the user issuing the command.")] = "cli",
    as_json: JsonOption = False,
):
    """Interpret a spoken CRM command."""
    deps = get_dependencies()
    result = run_async(deps["orchestrator"].process_voice_command(text, user))
    if as_json:
        _print_json(result.to_dict())
    else:
        deps["ui"].display_voice_command(result)


@app.command()
def score(
    file: Annotated[Path, typer.Option(
        "--file", "-f", exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
        help="JSON file with a list of leads (or an object with a 'leads' list).",
    )],
    as_json: JsonOption = False,
):
    """Score leads by their likelihood to convert."""
    deps = get_dependencies()

    async def _score():
        data = await deps["fs"].read_json(file)
        leads = data.get("leads") if isinstance(data, dict) else data
        return await deps["orchestrator"].score_leads(leads)

    scored = run_async(_score())
    if as_json:
        _print_json([lead.to_dict() for lead in scored])
    else:
        deps["ui"].display_scored_leads(scored)


@app.command()
def health():
    """Show the service health classification."""
    deps = get_dependencies()
    deps["ui"].display_health(deps["orchestrator"].health_check())


@app.command()
def metrics(
    prometheus: Annotated[bool, typer.Option("--prometheus", help="Print the Prometheus exposition format.")] = False,
):
    """Show request, cache and rate-limit metrics."""
    deps = get_dependencies()
    orchestrator: AIServiceOrchestrator = deps["orchestrator"]
    if prometheus:
        typer.echo(orchestrator.metrics.export().decode("utf-8"))
        return
    deps["ui"].display_metrics(
        orchestrator.get_metrics(), orchestrator.get_rate_limit_status(), orchestrator.get_cache_stats(),
    )


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Configure logging before any command runs."""
    try:
        config = load_service_config()
    except ConfigurationError as e:
        ConsoleDisplay().display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)
    setup_logging(
        "DEBUG" if verbose else config.monitoring.log_level,
        log_file=config.monitoring.log_file,
    )


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
