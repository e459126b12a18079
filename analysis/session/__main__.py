"""
Run a live Tickcast session until interrupted.
"""

import argparse
import asyncio
import signal

import aiohttp

from oracle import (
    BinanceKlineSource,
    BinanceOrderBookSource,
    BybitTickerSource,
    EndpointRotation,
    KucoinStatsSource,
    OracleClient,
)
from shared import (
    AgentLogger,
    TickcastConfig,
    bind_session_context,
    clear_session_context,
    configure_logging,
    get_config,
)

from .display import LogDisplay
from .orchestrator import SessionOrchestrator


def build_oracle(config: TickcastConfig, logger: AgentLogger) -> OracleClient | None:
    """Oracle client, or None when no API key is configured."""
    api_key = config.get_oracle_api_key()
    if not api_key:
        logger.warning("No oracle API key configured, oracle predictions disabled")
        return None
    return OracleClient(
        api_key=api_key,
        model=config.oracle.model,
        base_url=config.oracle.base_url,
        timeout_s=config.oracle.timeout_s,
    )


async def run_session(config: TickcastConfig, use_oracle: bool = True) -> None:
    logger = AgentLogger("TICKCAST")
    market = config.market
    session_id = bind_session_context(market.symbol)
    logger.info("Starting session", session_id=session_id, environment=config.environment)

    async with aiohttp.ClientSession() as http:
        price_sources = [
            BinanceKlineSource(
                http,
                EndpointRotation(market.binance_endpoints),
                symbol=market.symbol,
                timeout_s=market.request_timeout_s,
            ),
            BybitTickerSource(
                http, url=market.bybit_url, symbol=market.symbol,
                timeout_s=market.request_timeout_s,
            ),
            KucoinStatsSource(
                http, url=market.kucoin_url, symbol=market.kucoin_symbol,
                timeout_s=market.request_timeout_s,
            ),
        ]
        order_book = BinanceOrderBookSource(
            http,
            EndpointRotation(market.binance_endpoints),
            symbol=market.symbol,
            limit=market.order_book_limit,
            timeout_s=market.request_timeout_s,
        )

        session = SessionOrchestrator(
            price_sources,
            order_book_source=order_book,
            oracle=build_oracle(config, logger) if use_oracle else None,
            config=config,
        )
        session.on_update(LogDisplay())

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops have no signal handlers
                pass

        await session.start()
        try:
            await stop_event.wait()
        finally:
            await session.stop()
            logger.info("Session summary", **session.get_stats())
            clear_session_context()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Live ETH/USDT short-horizon predictions")
    parser.add_argument("--log-level", default=None, help="Override TICKCAST_MONITORING__LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--no-oracle", action="store_true", help="Run heuristic signals only")
    args = parser.parse_args(argv)

    config = get_config()
    configure_logging(
        level=args.log_level or config.monitoring.log_level,
        json_format=args.json_logs or config.monitoring.json_logs or config.is_production(),
    )

    try:
        asyncio.run(run_session(config, use_oracle=not args.no_oracle))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
