import os
import time
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from modules.cloze import get_formatter
from modules.flashcards import (
    CardType,
    Face,
    ParserOptions,
    FlashcardOptionsError,
    FlashcardParserError,
    parse_note,
    segment,
    expand_text,
)
from modules.utils import get_logger, log_error, log_request, set_request_context, blank_frontmatter

LOG = get_logger()


class Settings(BaseSettings):
    HOST: str = os.getenv('HOST', '0.0.0.0')
    PORT: int = int(os.getenv('PORT', '8000'))
    ENVIRONMENT: str = os.getenv('ENVIRONMENT', 'development')
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    CORS_ORIGIN: str = os.getenv('CORS_ORIGIN', '*')
    MAX_NOTE_LENGTH: int = int(os.getenv('MAX_NOTE_LENGTH', str(2 * 1024 * 1024)))


settings = Settings()

app = FastAPI(title='Notes Flashcard Parser', version='1.0.0', description='Extracts inline flashcards from markdown notes')

origins = [o.strip() for o in settings.CORS_ORIGIN.split(',') if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware('http')
async def add_request_id_and_logging(request: Request, call_next):
    # prefer incoming X-Request-ID header for cross-service tracing
    request_id = request.headers.get('x-request-id') or os.urandom(8).hex()
    request.state.request_id = request_id
    set_request_context(request_id)
    start = time.time()
    LOG.info('http_request_start', extra={'method': request.method, 'path': request.url.path, 'request_id': request_id, 'client': request.client.host if request.client else None})
    try:
        response: Response = await call_next(request)
    except Exception as e:
        log_error(e, {'request_id': request_id, 'path': request.url.path})
        body = {'success': False, 'error': {'message': 'Internal server error', 'request_id': request_id}}
        return JSONResponse(status_code=500, content=body)
    duration = int((time.time() - start) * 1000)
    log_request(request_id, request.method, request.url.path, response.status_code, duration, ip=request.client.host if request.client else None)
    response.headers['X-Request-ID'] = request_id
    return response


@app.get('/health')
async def health():
    return {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat(), 'service': 'cards'}


class CardPayload(BaseModel):
    kind: CardType
    text: str
    start_line: int
    end_line: int
    scheduling: Optional[str] = None
    faces: List[Face] = Field(default_factory=list)


class ParseRequest(BaseModel):
    text: str
    options: Optional[Dict[str, Any]] = Field(None, description='Parser options: separators, end marker, cloze patterns, outline tag')
    formatter: str = Field('html', description='Cloze rendering: html|plain')


class ParseResponse(BaseModel):
    success: bool
    cards: List[CardPayload]
    metadata: dict
    request_id: str


class SegmentResponse(BaseModel):
    success: bool
    cards: List[CardPayload]
    request_id: str


class SegmentRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    text: str
    options: Optional[Dict[str, Any]] = Field(None, description='Parser options: separators, end marker, cloze patterns, outline tag')


class ExpandRequest(BaseModel):
    kind: CardType
    text: str
    options: Optional[Dict[str, Any]] = None
    formatter: str = Field('html', description='Cloze rendering: html|plain')


class ExpandResponse(BaseModel):
    success: bool
    faces: List[Face]
    request_id: str


def _request_id(fastapi_request: Request) -> str:
    return getattr(fastapi_request.state, 'request_id', None) or os.urandom(8).hex()


def _error(status_code: int, error: str, details: str, request_id: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'error': error, 'details': details, 'request_id': request_id})


def _formatter(name: str):
    try:
        return get_formatter(name)
    except ValueError as e:
        raise FlashcardOptionsError(str(e)) from e


def _check_kind(kind: CardType, text: str, options: ParserOptions, request_id: str) -> Optional[JSONResponse]:
    # the text must scan as exactly one unit of the requested kind
    units = segment(text, options)
    if len(units) != 1 or units[0].kind != kind:
        found = [u.kind.value for u in units]
        return _error(422, 'Invalid card text', f'text is not a single {kind.value} card (segmented as {found})', request_id)
    return None


def _check_text(text: str, request_id: str) -> Optional[JSONResponse]:
    if not text or not text.strip():
        return _error(400, 'Empty text', 'text must contain at least one non-blank line', request_id)
    if len(text) > settings.MAX_NOTE_LENGTH:
        return _error(413, 'Note too large', f'text must be at most {settings.MAX_NOTE_LENGTH} characters', request_id)
    return None


@app.post('/flashcards/parse', response_model=ParseResponse)
async def parse_flashcards_endpoint(req: ParseRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    invalid = _check_text(req.text, request_id)
    if invalid is not None:
        return invalid

    LOG.info('flashcard_parse_start', extra={'request_id': request_id, 'text_length': len(req.text)})
    try:
        options = ParserOptions.from_dict(req.options)
        formatter = _formatter(req.formatter)
        result = parse_note(req.text, options, formatter=formatter, request_id=request_id)
        cards = [CardPayload(**c.unit.model_dump(), scheduling=c.scheduling, faces=c.faces) for c in result.cards]
        LOG.info('flashcard_parse_complete', extra={'request_id': request_id, 'count': len(cards), 'duration_ms': result.metadata.get('processing_time_ms')})
        return ParseResponse(success=True, cards=cards, metadata=result.metadata, request_id=request_id)
    except FlashcardOptionsError as e:
        LOG.warning('flashcard_options_invalid', extra={'request_id': request_id, 'error': str(e)})
        return _error(422, 'Invalid options', str(e), request_id)
    except FlashcardParserError as e:
        LOG.exception('flashcard_parse_failed', exc_info=True)
        return _error(500, 'Flashcard parsing failed', str(e), request_id)
    except Exception as e:
        LOG.exception('flashcard_parse_unknown_error', exc_info=True)
        return _error(500, 'Unexpected error', str(e), request_id)


@app.post('/flashcards/segment', response_model=SegmentResponse)
async def segment_flashcards_endpoint(req: SegmentRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    invalid = _check_text(req.text, request_id)
    if invalid is not None:
        return invalid

    try:
        options = ParserOptions.from_dict(req.options)
        units = segment(blank_frontmatter(req.text), options)
        cards = [CardPayload(**u.model_dump()) for u in units]
        LOG.info('flashcard_segment_complete', extra={'request_id': request_id, 'count': len(cards)})
        return SegmentResponse(success=True, cards=cards, request_id=request_id)
    except FlashcardOptionsError as e:
        LOG.warning('flashcard_options_invalid', extra={'request_id': request_id, 'error': str(e)})
        return _error(422, 'Invalid options', str(e), request_id)
    except Exception as e:
        LOG.exception('flashcard_segment_unknown_error', exc_info=True)
        return _error(500, 'Unexpected error', str(e), request_id)


@app.post('/flashcards/expand', response_model=ExpandResponse)
async def expand_flashcard_endpoint(req: ExpandRequest, fastapi_request: Request):
    request_id = _request_id(fastapi_request)
    try:
        options = ParserOptions.from_dict(req.options)
        formatter = _formatter(req.formatter)
        invalid = _check_kind(req.kind, req.text, options, request_id)
        if invalid is not None:
            return invalid
        faces = expand_text(req.kind, req.text, options, formatter=formatter)
        return ExpandResponse(success=True, faces=faces, request_id=request_id)
    except FlashcardOptionsError as e:
        LOG.warning('flashcard_options_invalid', extra={'request_id': request_id, 'error': str(e)})
        return _error(422, 'Invalid options', str(e), request_id)
    except Exception as e:
        LOG.exception('flashcard_expand_unknown_error', exc_info=True)
        return _error(500, 'Unexpected error', str(e), request_id)


@app.on_event('startup')
async def on_startup():
    LOG.info('Flashcard parser starting', extra={'env': settings.ENVIRONMENT})


@app.on_event('shutdown')
async def on_shutdown():
    LOG.info('Flashcard parser shutting down')


if __name__ == '__main__':
    import uvicorn

    reload_enabled = settings.ENVIRONMENT == 'development'

    uvicorn.run(
        'main:app',
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=reload_enabled,
    )
