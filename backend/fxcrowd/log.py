import logging

def setup_logging(level: int = logging.INFO) -> None:
    # Now, we configure the global logging system.
    # We use a predictable format including Timestamp, Log Level, Logger Name, and Message.
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # Playwright and the HTTP stack are chatty at INFO.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
