"""AWS Lambda handler serving the reconciled Olympic schedule."""
import json
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from functools import partial
from typing import Dict, Any

from pipeline.results_loader import ResultsLoader
from pipeline.schedule_orchestrator import ScheduleOrchestrator, ScheduleUnavailableError
from processor.results import group_results, medal_counts, merge_results
from source.event_api import EventApiClient
from source.static_files import load_roster
from storage.dynamodb_cache import DynamoDBCacheStore

# Shared across warm invocations so a queued refresh can finish later.
# The throttle is claimed before the refresh thread runs. If Lambda freezes or
# recycles the container after the response, the queued refresh is lost and no
# container retries until the throttle interval has passed; readers keep the
# stale cache until then.
REFRESH_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix='schedule-refresh')


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def refresh_requested(event: Dict[str, Any]) -> bool:
    """
    Check whether the request asks to bypass caches (``?refresh``).

    Args:
        event: API Gateway / function URL event payload

    Returns:
        True if a refresh parameter is present
    """
    params = event.get('queryStringParameters') or {}
    if 'refresh' in params:
        return True
    return 'refresh' in (event.get('rawQueryString') or '')


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler returning the matched schedule.

    Args:
        event: HTTP event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    # Read configuration from environment variables
    table_name = os.environ.get('CACHE_TABLE_NAME', 'olympics-schedule-cache')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    api_key = os.environ.get('RAPIDAPI_KEY', '')
    api_host = os.environ.get('RAPIDAPI_HOST', EventApiClient.DEFAULT_HOST)
    fallback_path = os.environ.get('FALLBACK_SCHEDULE_PATH', 'data/schedule-cache.json')
    broadcast_path = os.environ.get('BROADCAST_RULES_PATH', 'data/broadcast.json')
    roster_path = os.environ.get('ROSTER_PATH', 'data/roster.json')
    results_url = os.environ.get('RESULTS_URL', '')
    results_fallback_path = os.environ.get('RESULTS_FALLBACK_PATH', 'data/results.json')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    force_refresh = refresh_requested(event or {})
    logger.info(
        "Lambda execution started",
        extra={
            'table_name': table_name,
            'force_refresh': force_refresh,
            'api_enabled': bool(api_key)
        }
    )

    try:
        cache_store = DynamoDBCacheStore(table_name=table_name)
        api_client = EventApiClient(api_key=api_key, host=api_host, timeout=timeout_seconds)
        orchestrator = ScheduleOrchestrator(
            api_client=api_client,
            cache_store=cache_store,
            fallback_schedule_path=fallback_path,
            broadcast_rules_path=broadcast_path,
            roster_provider=partial(load_roster, roster_path),
            executor=REFRESH_EXECUTOR
        )
        results_loader = ResultsLoader(
            cache_store=cache_store,
            fallback_path=results_fallback_path,
            api_client=api_client,
            results_url=results_url
        )

        try:
            matched_events = orchestrator.get_schedule(force_refresh=force_refresh)
        except ScheduleUnavailableError as e:
            # Both the live API and the static fallback failed
            logger.error(
                f"Schedule unavailable: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return {
                'statusCode': 503,
                'body': json.dumps({
                    'message': 'Schedule unavailable',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'duration_seconds': round(duration, 2)
                })
            }

        results = results_loader.load(orchestrator.clock(), force_refresh=force_refresh)
        matched_events = merge_results(matched_events, results)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'matched_events': len(matched_events),
                'events_with_results': len(results)
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Schedule loaded successfully',
                'events': [evt.to_dict() for evt in matched_events],
                'medal_counts': asdict(medal_counts(results)),
                'medals': group_results(results),
                'statistics': {
                    'matched_events': len(matched_events),
                    'refresh_queued': orchestrator.pending_refresh is not None,
                    'duration_seconds': round(duration, 2)
                }
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Schedule request failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
