"""Build entry point: resolves festival rules against the ICS feed."""
import json
import logging
import os
import sys
import time
from datetime import date
from typing import Dict, Any

from calendar_feed.ics_feed import IcsFeedClient
from festivals.date_rules import DateRuleResolver
from festivals.rules import load_rules
from festivals.schedule import build_schedule
from storage.artifact_store import LocalArtifactStore, S3ArtifactPublisher


DEFAULT_RULES_PATH = os.path.join('assets', 'themes', 'festivals.json')
DEFAULT_OUTPUT_PATH = os.path.join('assets', 'themes', 'festivals.generated.json')
DEFAULT_ARTIFACT_KEY = 'themes/festivals.generated.json'

_RESERVED_LOG_ATTRS = frozenset(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_LOG_ATTRS and not key.startswith('_'):
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure the root logger with the JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(time.time() - start_time, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Resolve the festival schedule and write the artifact.

    Stages run strictly in order: load rules, fetch the feed, resolve,
    validate, write. The artifact is only written after validation
    succeeds, so any failure leaves the previous artifact in place.

    Args:
        event: Invocation payload; an optional "today" (YYYY-MM-DD)
            overrides the reference day
        context: Lambda context object (unused)

    Returns:
        Response dict with statusCode and summary statistics
    """
    ics_url = os.environ.get('CAL_ICS_URL', '')
    rules_path = os.environ.get('RULES_PATH', DEFAULT_RULES_PATH)
    output_path = os.environ.get('OUTPUT_PATH', DEFAULT_OUTPUT_PATH)
    bucket = os.environ.get('ARTIFACT_BUCKET', '')
    artifact_key = os.environ.get('ARTIFACT_KEY', DEFAULT_ARTIFACT_KEY)
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        if not ics_url:
            raise ValueError('CAL_ICS_URL env var is required.')
        lookahead_months = int(os.environ.get('LOOKAHEAD_MONTHS', DateRuleResolver.LOOKAHEAD_MONTHS))
        timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
        today = date.fromisoformat(event['today']) if event and event.get('today') else None
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return _error_response('Invalid configuration', e, start_time)

    logger.info(
        "Festival build started",
        extra={
            'rules_path': rules_path,
            'output_path': output_path,
            'artifact_bucket': bucket or None,
            'lookahead_months': lookahead_months
        }
    )

    try:
        rule_set = load_rules(rules_path)
    except (OSError, ValueError) as e:
        logger.error(
            f"Failed to load festival rules: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Failed to load festival rules', e, start_time)

    try:
        feed = IcsFeedClient(ics_url, timeout=timeout_seconds)
        ics_events = feed.fetch_events()
    except Exception as e:
        logger.error(
            f"Failed to fetch calendar feed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Failed to fetch calendar feed', e, start_time)

    try:
        resolver = DateRuleResolver(today=today, lookahead_months=lookahead_months)
        resolved_events = resolver.resolve(rule_set.rules, ics_events)
        schedule = build_schedule(rule_set, resolved_events)
    except ValueError as e:
        logger.error(
            f"Resolved schedule is invalid: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Resolved schedule is invalid', e, start_time)

    try:
        content = LocalArtifactStore(output_path).write(schedule)
        if bucket:
            S3ArtifactPublisher(bucket, artifact_key).publish(content)
    except Exception as e:
        logger.error(
            f"Failed to write festival artifact: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Failed to write festival artifact', e, start_time)

    duration = round(time.time() - start_time, 2)
    logger.info(
        "Festival build completed successfully",
        extra={
            'duration_seconds': duration,
            'ics_events': len(ics_events),
            'resolved_events': len(schedule.resolved_events)
        }
    )

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'Festival schedule generated',
            'statistics': {
                'rules_loaded': len(rule_set.rules),
                'ics_events_parsed': len(ics_events),
                'resolved_events': len(schedule.resolved_events),
                'published_to_s3': bool(bucket),
                'duration_seconds': duration
            },
            'generatedAt': schedule.generated_at
        })
    }


def main() -> None:
    """Run the build once from the command line, exiting non-zero on failure."""
    response = lambda_handler({}, None)
    print(response['body'])
    sys.exit(0 if response['statusCode'] == 200 else 1)


if __name__ == '__main__':
    main()
