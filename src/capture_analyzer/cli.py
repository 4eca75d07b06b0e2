"""CLI entry point for capture analyzer."""

import asyncio
import json
from pathlib import Path

import typer

from capture_analyzer.adapters.sources.social_post_source import RATE_LIMIT_KEY
from capture_analyzer.config import get_settings
from capture_analyzer.use_cases import build_analysis_service, build_gate

app = typer.Typer(help="Classify captured URLs and extract their metadata.", no_args_is_help=True)


@app.command()
def analyze(
    target: str = typer.Argument(..., help="URL or free text to analyze"),
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to YAML config"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show configured credentials"),
) -> None:
    """Analyze a URL (or text) and print the result as JSON."""
    settings = get_settings(config)

    if verbose:
        _print_credentials(settings)

    service = build_analysis_service(settings)
    result = asyncio.run(service.analyze_url(target))

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


@app.command("rate-limit")
def rate_limit(
    key: str = typer.Option(RATE_LIMIT_KEY, "--key", "-k", help="Resource key of the gated source"),
    all_keys: bool = typer.Option(False, "--all", help="Show every stored resource key"),
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to YAML config"),
) -> None:
    """Show quota state of a rate-limited source."""
    settings = get_settings(config)
    gate = build_gate(settings)

    keys = gate.store.keys() if all_keys else [key]
    if not keys:
        print("No rate limit state stored yet")
        return

    for resource_key in keys:
        status = gate.get_status(resource_key)
        icon = "⏳" if status.is_rate_limited else "✓"
        print(f"{icon} {resource_key}: {status.message}")


def _print_credentials(settings) -> None:
    """Show which optional API keys are configured."""
    print(f"\n🔑 Credentials:")
    checks = [
        ("X_BEARER_TOKEN", settings.x_bearer_token, "X post lookups"),
        ("JINA_API_KEY", settings.jina_api_key, "full-text reader"),
        ("YOUTUBE_API_KEY", settings.youtube_api_key, "YouTube Data API (oEmbed otherwise)"),
        ("GITHUB_TOKEN", settings.github_token, "GitHub API (limited rate otherwise)"),
    ]
    for name, value, purpose in checks:
        mark = "✓" if value else "✗"
        print(f"  {mark} {name} - {purpose}")


if __name__ == "__main__":
    app()
