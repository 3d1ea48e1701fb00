"""
Example demonstrating the folioscope logging system.

This script shows various logging features including:
- Basic logging at different levels
- Contextual logging with add_context
- Sensitive data filtering
- Pretty and JSON output formats
"""

from datetime import datetime

from folioscope.analysis import analyze_technicals
from folioscope.data import generate_sample_price_data
from folioscope.utils import LogConfig, add_context, get_logger, set_log_level, setup_logging


def demo_basic_logging():
    """Demonstrate basic logging at different levels."""
    logger = get_logger(__name__)

    print("\n=== Basic Logging ===")
    logger.debug("debug_message", detail="This is a debug message")
    logger.info("info_message", detail="This is an info message")
    logger.warning("warning_message", detail="This is a warning")
    logger.error("error_message", detail="This is an error")


def demo_analysis_logging():
    """Run a short analysis so the engine's own events show up."""
    print("\n=== Analysis Logging ===")
    data = generate_sample_price_data("AAPL", 60, seed=7, start_date=datetime(2024, 1, 1))
    analyze_technicals(data, "AAPL")


def demo_contextual_logging():
    """Demonstrate contextual logging with add_context."""
    logger = get_logger(__name__)

    print("\n=== Contextual Logging ===")

    # All logs within this context will include request_id and portfolio
    with add_context(request_id="req-42", portfolio="growth"):
        logger.info("dashboard_refresh_started")
        logger.info("symbol_queued", symbol="AAPL")

        with add_context(symbol="MSFT"):
            logger.info("symbol_analyzed", signals=4)

    logger.info("outside_context")


def demo_sensitive_filtering():
    """Demonstrate sensitive data filtering."""
    logger = get_logger(__name__)

    print("\n=== Sensitive Data Filtering ===")
    logger.info(
        "quote_provider_connected",
        api_key="my_secret_api_key_12345",
        endpoint="https://quotes.example.com",
    )


def demo_error_logging():
    """Demonstrate error logging with exception info."""
    logger = get_logger(__name__)

    print("\n=== Error Logging ===")

    try:
        analyze_technicals([], "EMPTY")
    except ValueError as e:
        logger.error("analysis_rejected", symbol="EMPTY", error=str(e), exc_info=True)


def main():
    """Run all logging examples."""
    print("=== PRETTY FORMAT (Development) ===")
    config = LogConfig(
        level="DEBUG",
        format="pretty",
        include_timestamp=True,
        include_caller_info=True,
        environment="dev",
    )
    setup_logging(config)

    demo_basic_logging()
    demo_contextual_logging()
    demo_sensitive_filtering()
    demo_error_logging()

    set_log_level("INFO")
    demo_analysis_logging()

    print("\n\n=== JSON FORMAT (Production) ===")
    config = LogConfig(
        level="INFO",
        format="json",
        file_path="logs/folioscope.log",
        include_caller_info=False,
        environment="prod",
    )
    setup_logging(config)

    demo_contextual_logging()
    demo_analysis_logging()

    print("\n\nLogs have also been written to: logs/folioscope.log")


if __name__ == "__main__":
    main()
