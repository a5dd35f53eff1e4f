import os

DEBUG = os.getenv("ANALYZER_DEBUG", "0").strip().lower() not in {"", "0", "false", "no"}


def debug(*parts) -> None:
    """Developer console trace. Silent unless ANALYZER_DEBUG is set."""
    if DEBUG:
        print(*parts, flush=True)
