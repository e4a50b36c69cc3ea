"""CLI for prom-tg-alerts.

Usage:
    prom-tg-alerts run -u http://prometheus:9090/api/v1/alerts -t TOKEN -c CHAT_ID
    prom-tg-alerts check -u http://prometheus:9090/api/v1/alerts
    prom-tg-alerts test
    prom-tg-alerts send "Maintenance starts in 10 minutes"
"""

from pathlib import Path

import click

from prom_tg_alerts.alerter import AlertSource, TelegramClient, build_messages, run_alerter
from prom_tg_alerts.config import DEFAULT_CONFIG_PATH, Config
from prom_tg_alerts.logging import configure_logging, get_logger

log = get_logger(__name__)

SERVICE_NAME = "prom-tg-alerts"


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool) -> None:
    """Telegram alert status notifications for Prometheus."""
    ctx.ensure_object(dict)
    config = Config.from_file(config_path)
    configure_logging(SERVICE_NAME, "DEBUG" if verbose else config.log_level)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


@main.command("run")
@click.option("--url", "-u", help="Prometheus alerts URL [env: PROMETHEUS_ALERTS_URL]")
@click.option("--tg-bot-token", "-t", help="Telegram bot token [env: TELEGRAM_BOT_TOKEN]")
@click.option("--tg-chat-id", "-c", help="Telegram chat ID [env: TELEGRAM_CHAT_ID]")
@click.option("--group-by", "-g", help="Label to group summary messages [env: GROUP_BY]")
@click.option("--frequency", "-f", type=int, help="Seconds between checks [env: FREQUENCY]")
@click.option("--metrics-port", type=int, help="Serve Prometheus metrics on this port")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    url: str | None,
    tg_bot_token: str | None,
    tg_chat_id: str | None,
    group_by: str | None,
    frequency: int | None,
    metrics_port: int | None,
) -> None:
    """Run the notifier daemon.

    Polls the alerts URL and posts grouped alert summaries to the Telegram
    chat whenever the set of firing alerts changes.
    """
    config: Config = ctx.obj["config"]
    if url:
        config.alerts_url = url
    if tg_bot_token:
        config.telegram_bot_token = tg_bot_token
    if tg_chat_id:
        config.telegram_chat_id = tg_chat_id
    if group_by:
        config.group_by = group_by
    if frequency is not None:
        config.frequency = frequency
    if metrics_port is not None:
        config.metrics_port = metrics_port

    missing = config.missing()
    if missing:
        click.echo(f"Error: missing required settings: {', '.join(missing)}")
        raise SystemExit(1)
    if config.frequency <= 0:
        click.echo("Error: frequency must be a positive number of seconds")
        raise SystemExit(1)

    click.echo("Starting alert notifier...")
    click.echo(f"  Alerts URL: {config.alerts_url}")
    click.echo(f"  Telegram chat: {config.telegram_chat_id}")
    click.echo(f"  Group by: {config.group_by}")
    click.echo(f"  Frequency: {config.frequency}s")
    if config.metrics_port:
        click.echo(f"  Metrics port: {config.metrics_port}")
    click.echo("")

    run_alerter(config)


@main.command("check")
@click.option("--url", "-u", help="Prometheus alerts URL [env: PROMETHEUS_ALERTS_URL]")
@click.option("--group-by", "-g", help="Label to group summary messages")
@click.pass_context
def check(ctx: click.Context, url: str | None, group_by: str | None) -> None:
    """Fetch alerts once and print the messages that would be sent."""
    config: Config = ctx.obj["config"]
    alerts_url = url or config.alerts_url
    if not alerts_url:
        click.echo("Error: alerts URL not set (use --url or PROMETHEUS_ALERTS_URL)")
        raise SystemExit(1)

    state = AlertSource(alerts_url, timeout=config.fetch_timeout).fetch()
    messages = build_messages(state, group_by or config.group_by, config.markdown)

    for key in sorted(messages):
        click.echo(f"=== {key or '(all)'} ===")
        click.echo(messages[key])
        click.echo("")

    if state.error:
        raise SystemExit(1)


def get_client(config: Config) -> TelegramClient:
    """Build a Telegram client or exit with an error."""
    if not config.telegram_bot_token or not config.telegram_chat_id:
        click.echo("Error: TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")
        raise SystemExit(1)
    return TelegramClient(
        config.telegram_bot_token,
        api_url=config.telegram_api_url,
        parse_mode=config.parse_mode,
        timeout=config.send_timeout,
    )


@main.command("test")
@click.pass_context
def test_cmd(ctx: click.Context) -> None:
    """Send a test message to verify the bot token and chat ID."""
    config: Config = ctx.obj["config"]
    client = get_client(config)
    if client.send(config.telegram_chat_id, "Test alert: prom-tg-alerts is configured correctly."):
        click.echo("Test message sent successfully!")
    else:
        click.echo("Failed to send test message")
        raise SystemExit(1)


@main.command("send")
@click.argument("message")
@click.pass_context
def send(ctx: click.Context, message: str) -> None:
    """Send a custom message to the Telegram chat."""
    config: Config = ctx.obj["config"]
    client = get_client(config)
    log.debug("Sending custom message", length=len(message))
    if client.send(config.telegram_chat_id, message):
        click.echo("Message sent!")
    else:
        click.echo("Failed to send message")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
