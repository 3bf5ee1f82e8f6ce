# video_funnel/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from video_funnel.api.v1.endpoints import health, video, analytics
from video_funnel.core.config import settings
from video_funnel.core.logging_config import setup_logging
from video_funnel.db.init_db import init_db
from middleware.request_logging import RequestLoggingMiddleware
import logging

# Configurar logging al inicio de la aplicacion
setup_logging()
logger = logging.getLogger('video_funnel')


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info('Video Funnel API starting up')
    yield
    logger.info('Video Funnel API shutting down')


app = FastAPI(
    title='Video Funnel API',
    description='''
    ## Backend de la landing page con video

    **Servicios Disponibles:**
    - **Video**: Configuracion del video activo y tiempo de desbloqueo del boton
    - **Analytics**: Registro de eventos de interaccion (inicio de video, desbloqueo)
    - **Health Check**: Monitoreo de estado de servicios
    ''',
    version='1.0.0',
    lifespan=lifespan,
    openapi_url='/openapi.json',
    docs_url='/docs',
    redoc_url='/redoc'
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.add_middleware(RequestLoggingMiddleware)

# Incluir rutas
app.include_router(health.router, prefix='/api', tags=['Health Check'])
app.include_router(video.router, prefix='/api', tags=['Video'])
app.include_router(analytics.router, prefix='/api', tags=['Analytics'])


@app.get('/')
async def root():
    return {
        'message': 'Video Funnel API',
        'status': 'operativo',
        'version': '1.0.0',
        'docs': '/docs',
        'public_endpoints': {
            'current_video': '/api/video/current',
            'track_event': '/api/analytics/event'
        }
    }


@app.get('/metrics', include_in_schema=False)
async def prometheus_metrics():
    """Endpoint de metricas para Prometheus"""
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
