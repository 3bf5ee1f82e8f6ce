# MIDDLEWARE DE LOGGING DE PETICIONES
# Asigna un request id a cada peticion, registra su duracion y la exporta a Prometheus

import time
import json
import uuid
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
import logging

api_requests_total = Counter(
    'api_requests_total',
    'Total de peticiones a la API del funnel',
    ['method', 'endpoint', 'status_code']
)

api_request_duration_seconds = Histogram(
    'api_request_duration_seconds',
    'Duracion de las peticiones a la API del funnel en segundos',
    ['method', 'endpoint']
)


def generate_request_id() -> str:
    return f'req_{uuid.uuid4().hex[:12]}'


def endpoint_label(request: Request) -> str:
    # Plantilla de la ruta (/api/admin/video/{video_id}) para acotar las etiquetas
    route = request.scope.get('route')
    return getattr(route, 'path', None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self.logger = logging.getLogger('video_funnel.requests')

    def record(self, request: Request, status_code: int, elapsed: float) -> None:
        endpoint = endpoint_label(request)
        api_requests_total.labels(
            method=request.method, endpoint=endpoint, status_code=str(status_code)
        ).inc()
        api_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(elapsed)

    async def dispatch(self, request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                f'Unhandled error: {request.method} {request.url.path}',
                extra={'request_id': request_id, 'method': request.method, 'endpoint': request.url.path}
            )
            self.record(request, 500, time.perf_counter() - started)
            response = Response(
                content=json.dumps({'error': 'Internal server error', 'request_id': request_id}),
                status_code=500,
                media_type='application/json'
            )
            response.headers['X-Request-ID'] = request_id
            return response

        elapsed = time.perf_counter() - started
        self.record(request, response.status_code, elapsed)
        extra = {
            'request_id': request_id,
            'method': request.method,
            'endpoint': request.url.path,
            'status_code': response.status_code,
            'response_time_ms': int(elapsed * 1000),
        }
        if response.status_code >= 500:
            self.logger.error(f'API request failed: {request.method} {request.url.path}', extra=extra)
        else:
            self.logger.info(f'API request: {request.method} {request.url.path}', extra=extra)

        response.headers['X-Request-ID'] = request_id
        return response
