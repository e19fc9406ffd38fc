"""
Request logging with timing and process metrics
"""
import time
import logging
import json
import uuid
from flask import request, g
import psutil

from backend.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

# Never written to the log
REDACTED_HEADERS = {'authorization', 'authentication-token', 'cookie'}
REDACTED_FIELDS = {'password', 'new_password', 'current_password'}


class RequestLogger:
    """Structured per-request log line with performance metrics"""

    @staticmethod
    def init_app(app):
        app.before_request(RequestLogger.before_request)
        app.after_request(RequestLogger.after_request)

    @staticmethod
    def before_request():
        """Record request start time and initial metrics"""
        g.start_time = time.time()
        g.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex

        try:
            g.initial_memory = psutil.Process().memory_info().rss
        except Exception as e:
            logger.debug(f"Could not collect initial process metrics: {e}")
            g.initial_memory = 0

    @staticmethod
    def after_request(response):
        """Log request details and attach the request id to the response"""
        if not hasattr(g, 'start_time'):
            return response

        duration_ms = (time.time() - g.start_time) * 1000

        memory_diff = 0
        try:
            if getattr(g, 'initial_memory', 0) > 0:
                memory_diff = psutil.Process().memory_info().rss - g.initial_memory
        except Exception as e:
            logger.debug(f"Could not collect final process metrics: {e}")

        log_data = {
            'timestamp': utc_now().isoformat(),
            'request_id': g.request_id,
            'method': request.method,
            'path': request.path,
            'endpoint': request.endpoint,
            'remote_addr': request.remote_addr,
            'status_code': response.status_code,
            'duration_ms': round(duration_ms, 2),
            'memory_delta_mb': round(memory_diff / (1024 * 1024), 3) if memory_diff > 0 else 0,
            'headers': {
                k: v for k, v in request.headers.items() if k.lower() not in REDACTED_HEADERS
            },
        }

        if request.args:
            log_data['query_params'] = dict(request.args)

        if request.is_json and request.content_length and request.content_length < 1024:
            body = request.get_json(silent=True)
            if isinstance(body, dict):
                log_data['json_body'] = {
                    k: ('***' if k in REDACTED_FIELDS else v) for k, v in body.items()
                }

        log_level = logging.INFO
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING

        logger.log(log_level, f"REQUEST_LOG: {json.dumps(log_data, default=str)}")
        response.headers['X-Request-ID'] = g.request_id
        return response
