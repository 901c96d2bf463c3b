import os
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Dict, List, Literal, Optional
from fastapi import FastAPI, Request, Depends, Query, File, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from prometheus_fastapi_instrumentator.metrics import Info
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from publisher.auth import auth_service, require_admin, require_user
from publisher.config import config, REQUEST_LATENCY_BUCKETS
from publisher.errors import InternalError, NotFoundError, PublisherError
from publisher.listing import ListingQuery, ListingService
from publisher.models.entities import Article, User
from publisher.models.schemas import (
    ArticleCreate,
    ArticleUpdate,
    AuthRequest,
    CategoryCreate,
    CategoryUpdate,
)
from publisher.sanitize import sanitize_content, sanitize_title
from publisher.storage import image_storage
from publisher.store import store

# --- 기본 로깅 ---
logging.basicConfig(level=config.server.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('PublisherServiceApp')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources."""
    await store.initialize()
    os.makedirs(config.storage.upload_dir, exist_ok=True)
    logger.info("Publisher service initialized: in-memory store ready")
    yield
    logger.info("Publisher service shutdown")


app = FastAPI(lifespan=lifespan)

# Rate Limiting 설정
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Total-Count"],
)

# Prometheus 메트릭 설정
# status 레이블은 상태 코드 그룹(2xx, 4xx, 5xx) 단위로 집계
http_requests_total_custom = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ("method", "status"),
)


def http_requests_total_custom_metric(info: Info) -> None:
    status_code = info.response.status_code if info.response is not None else 500
    status_group = "unknown"
    if 200 <= status_code < 300:
        status_group = "2xx"
    elif 300 <= status_code < 400:
        status_group = "3xx"
    elif 400 <= status_code < 500:
        status_group = "4xx"
    elif 500 <= status_code < 600:
        status_group = "5xx"

    http_requests_total_custom.labels(info.method, status_group).inc()


def configure_metrics(application: FastAPI) -> None:
    """Configure Prometheus request latency metrics with fine-grained buckets."""
    instrumentator = Instrumentator()
    instrumentator.add(metrics.latency(buckets=REQUEST_LATENCY_BUCKETS))
    instrumentator.add(http_requests_total_custom_metric)
    instrumentator.instrument(application).expose(application)


configure_metrics(app)

app.mount(
    config.storage.upload_url_prefix,
    StaticFiles(directory=config.storage.upload_dir, check_dir=False),
    name="uploads",
)


# --- 에러 응답: 모든 실패는 {"error": message} 형태 ---
@app.exception_handler(PublisherError)
async def handle_publisher_error(request: Request, exc: PublisherError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(content={"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(content={"error": message}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(content={"error": message}, status_code=400)


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)
    error = InternalError("Internal server error")
    return JSONResponse(content={"error": error.message}, status_code=error.status_code)


# --- 공통 헬퍼 ---
def listing_query(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=config.listing.max_page_size),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1, le=config.listing.max_page_size),
    q: Optional[str] = Query(None, max_length=200),
    search: Optional[str] = Query(None, max_length=200),
    category_id: Optional[str] = Query(None, alias="categoryId", max_length=64),
    category: Optional[str] = Query(None, max_length=64),
) -> ListingQuery:
    """page/limit/q 파라미터를 ListingQuery로 변환합니다 (pageSize, search, category 별칭 지원)."""
    return ListingQuery(
        page=page,
        page_size=page_size or limit or config.listing.default_page_size,
        text_query=q or search,
        category_id=category_id or category,
    )


def listing_response(envelope: Dict) -> JSONResponse:
    return JSONResponse(content=envelope, headers={"X-Total-Count": str(envelope["total"])})


async def serialize_articles(articles: List[Article]) -> List[Dict]:
    """Embed each article's category and author; dangling references become null."""
    categories = {c.id: c for c in await store.categories.get_all()}
    users = {u.id: u for u in await store.users.get_all()}
    result = []
    for article in articles:
        body = article.to_json()
        category = categories.get(article.category_id)
        author = users.get(article.author_id)
        body["category"] = category.to_json() if category else None
        body["user"] = {"id": author.id, "username": author.username} if author else None
        result.append(body)
    return result


# --- 인증 API ---
@app.post("/api/auth")
# register와 login 모두 같은 한도를 공유, 요청 시점의 설정값을 사용
@limiter.limit(lambda: config.auth.login_rate_limit)
async def handle_auth(request: Request, payload: AuthRequest):
    """회원가입(register) 또는 로그인(login)을 처리합니다."""
    if payload.action == "register":
        user = await auth_service.register(payload.username, payload.password, payload.role)
        return JSONResponse(content=user.to_json(), status_code=201)
    result = await auth_service.login(payload.username, payload.password)
    return JSONResponse(content=result)


@app.get("/api/auth/profile")
async def handle_profile(user: User = Depends(require_user)):
    """토큰 소유자의 프로필을 반환합니다."""
    return {"success": True, "data": user.to_json(), "message": "Profile retrieved"}


# --- 게시글 API ---
@app.get("/api/articles")
async def handle_get_articles(
    query: ListingQuery = Depends(listing_query),
    sort: Optional[Literal["newest", "oldest"]] = Query(None),
):
    """게시글 목록(검색, 카테고리 필터, 페이지네이션)을 반환합니다."""
    service = ListingService(store.articles)
    if sort:
        result = await service.list(query, sort_key=lambda a: a.created_at, reverse=sort == "newest")
    else:
        result = await service.list(query)
    envelope = result.to_envelope()
    envelope["data"] = await serialize_articles(result.items)
    return listing_response(envelope)


@app.get("/api/articles/{article_id}")
async def handle_get_article(article_id: str):
    article = await store.articles.get_by_id(article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return (await serialize_articles([article]))[0]


@app.post("/api/articles", status_code=201)
async def create_article(payload: ArticleCreate, user: User = Depends(require_admin)):
    article = await store.articles.create(
        title=sanitize_title(payload.title),
        content=sanitize_content(payload.content),
        category_id=payload.category_id,
        author_id=user.id,
        image_url=payload.image_url,
    )
    body = (await serialize_articles([article]))[0]
    return JSONResponse(content={"message": "Article created", "article": body}, status_code=201)


@app.put("/api/articles/{article_id}")
async def update_article(article_id: str, payload: ArticleUpdate, user: User = Depends(require_admin)):
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("title") is not None:
        fields["title"] = sanitize_title(fields["title"])
    if fields.get("content") is not None:
        fields["content"] = sanitize_content(fields["content"])
    article = await store.articles.update(article_id, fields)
    body = (await serialize_articles([article]))[0]
    return {"message": "Article updated", "article": body}


@app.delete("/api/articles/{article_id}")
async def delete_article(article_id: str, user: User = Depends(require_admin)):
    deleted = await store.articles.delete(article_id)
    return {"message": "Article deleted", "deletedArticle": deleted.to_json()}


# --- 카테고리 API ---
@app.get("/api/categories")
async def handle_get_categories(query: ListingQuery = Depends(listing_query)):
    """카테고리 목록(이름 검색, 페이지네이션)을 반환합니다."""
    result = await ListingService(store.categories).list(replace(query, category_id=None))
    return listing_response(result.to_envelope(lambda c: c.to_json()))


@app.get("/api/categories/{category_id}")
async def handle_get_category(category_id: str):
    category = await store.categories.get_by_id(category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category.to_json()


@app.post("/api/categories", status_code=201)
async def create_category(payload: CategoryCreate, user: User = Depends(require_admin)):
    category = await store.categories.create(payload.name, user.id)
    return JSONResponse(
        content={"message": "Category created successfully", "category": category.to_json()},
        status_code=201,
    )


@app.put("/api/categories/{category_id}")
async def update_category(category_id: str, payload: CategoryUpdate, user: User = Depends(require_admin)):
    category = await store.categories.update(category_id, payload.model_dump(exclude_unset=True))
    return {"message": "Category updated", "category": category.to_json()}


@app.delete("/api/categories/{category_id}")
async def delete_category(category_id: str, user: User = Depends(require_admin)):
    deleted = await store.delete_category(category_id)
    return {"message": "Category deleted", "deletedCategory": deleted.to_json()}


# --- 이미지 업로드 ---
@app.post("/api/upload")
async def upload_image(file: Optional[UploadFile] = File(None), user: User = Depends(require_user)):
    url = await image_storage.save(file)
    return {"url": url}


@app.get("/health")
async def handle_health():
    """헬스 체크 엔드포인트"""
    return {"status": "ok", "service": "publisher-service"}


@app.get("/stats")
async def handle_stats():
    """대시보드를 위한 통계 엔드포인트"""
    return {
        "publisher_service": {
            "service_status": "online",
            **(await store.stats()),
        }
    }


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Publisher Service starting on http://{config.server.host}:{config.server.port}")
    uvicorn.run(app, host=config.server.host, port=config.server.port)
