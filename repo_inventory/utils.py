"""Utility functions for the repository inventory fetcher."""

from loguru import logger


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f} seconds"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.2f} minutes"
    else:
        hours = seconds / 3600
        return f"{hours:.2f} hours"


def log_run_summary(result, duration: float) -> None:
    """Log run summary statistics."""
    logger.info("=" * 50)
    logger.info("INVENTORY SUMMARY")
    logger.info("=" * 50)
    logger.info(f"Final state: {result.state.value}")
    logger.info(f"Pages fetched: {result.pages_fetched}")
    logger.info(f"Repositories seen: {result.records_seen}")
    logger.info(f"Repositories in snapshot: {len(result.snapshot)}")
    logger.info(f"Fetch errors: {len(result.errors)}")
    if result.write_error is not None:
        logger.info(f"Write error: {result.write_error}")
    logger.info(f"Total duration: {format_duration(duration)}")
    logger.info("=" * 50)
