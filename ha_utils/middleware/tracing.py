"""
リクエストトレーシングミドルウェア

純粋なASGIミドルウェアとして実装し、HTTPリクエストとWebSocketストリームの両方に
リクエストIDを付与する
"""
import time
import uuid

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = b"x-request-id"
PROCESS_TIME_HEADER = b"x-process-time"


class _Trace:
    """1接続分のトレース情報"""

    def __init__(self, scope: Scope) -> None:
        self.headers = {
            k.decode("latin-1"): v.decode("latin-1") for k, v in scope.get("headers", [])
        }
        self.path = scope.get("path", "")
        self.is_websocket = scope["type"] == "websocket"
        self.method = "WEBSOCKET" if self.is_websocket else scope.get("method", "")
        self.request_id = self.headers.get("x-request-id") or str(uuid.uuid4())
        self.started = time.perf_counter()

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)

    def with_headers(self, message: Message) -> Message:
        """接続確立・レスポンス開始メッセージにトレース用ヘッダーを追加"""
        headers = list(message.get("headers", []))
        headers.append([REQUEST_ID_HEADER, self.request_id.encode("latin-1")])
        if not self.is_websocket:
            elapsed = time.perf_counter() - self.started
            headers.append([PROCESS_TIME_HEADER, f"{elapsed:.4f}".encode("latin-1")])
        return {**message, "headers": headers}


class TracingMiddleware:
    """
    リクエストトレーシングミドルウェア

    request_id・method・path を structlog のコンテキストに束縛し、
    X-Request-ID ヘッダーで返す。WebSocketではクローズコードもログに残す。
    """

    # 監視系のポーリングはログに出さない
    SKIP_LOG_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})

    def __init__(self, app: ASGIApp, log_requests: bool = True):
        self.app = app
        self.log_requests = log_requests

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        trace = _Trace(scope)
        clear_contextvars()
        bind_contextvars(request_id=trace.request_id, method=trace.method, path=trace.path)

        # request.state / websocket.state から参照できるようにする
        scope.setdefault("state", {})["request_id"] = trace.request_id

        verbose = self.log_requests and trace.path not in self.SKIP_LOG_PATHS
        if verbose:
            client = scope.get("client")
            logger.info(
                "ストリーム接続" if trace.is_websocket else "リクエスト受信",
                client_ip=client[0] if client else "unknown",
                user_agent=trace.headers.get("user-agent", "unknown"),
            )

        async def traced_send(message: Message) -> None:
            kind = message["type"]
            if kind in ("http.response.start", "websocket.accept"):
                message = trace.with_headers(message)
                if verbose and kind == "http.response.start":
                    logger.info(
                        "レスポンス送信",
                        status_code=message.get("status"),
                        process_time_ms=trace.elapsed_ms(),
                    )
            elif kind == "websocket.close" and verbose:
                logger.info(
                    "ストリーム終了",
                    close_code=message.get("code"),
                    duration_ms=trace.elapsed_ms(),
                )
            await send(message)

        try:
            await self.app(scope, receive, traced_send)
        except Exception as e:
            logger.error(
                "リクエスト処理エラー",
                error=str(e),
                error_type=type(e).__name__,
                process_time_ms=trace.elapsed_ms(),
                exc_info=True,
            )
            raise
        finally:
            clear_contextvars()
