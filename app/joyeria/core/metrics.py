from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.joyeria.core.config import settings

_LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    """Process-local prometheus registry for request and register activity."""

    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        if self.enabled:
            self._build()

    def _counter(self, name: str, documentation: str, labels: tuple[str, ...] = ()) -> Counter:
        return Counter(name, documentation, list(labels), registry=self._registry)

    def _build(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests = self._counter(
            "http_requests_total", "HTTP requests by route/method/status.", ("route", "method", "status")
        )
        self._http_latency = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=_LATENCY_BUCKETS_MS,
            registry=self._registry,
        )
        self._rejections = self._counter(
            "business_rejections_total", "Requests refused with a catalogued error.", ("code",)
        )
        self._replays = self._counter("idempotency_replay_total", "Idempotent replay responses.")
        self._lock_timeouts = self._counter("lock_wait_timeout_total", "Lock wait timeout occurrences.")
        self._sales = self._counter("sales_created_total", "Committed sales by sale kind.", ("tipo_venta",))
        self._payments = self._counter(
            "receivable_payments_total", "Payments applied to receivable accounts.", ("metodo_pago",)
        )
        self._closings = self._counter("register_closings_total", "Cash register closings.")
        self._closed_sales = self._counter(
            "register_closed_sales_total", "Open-register sales moved to history by a closing."
        )

    def reset(self) -> None:
        if self.enabled:
            self._build()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests.labels(**labels).inc()
        self._http_latency.labels(**labels).observe(latency_ms)

    def increment_rejection(self, code: str) -> None:
        if self.enabled:
            self._rejections.labels(code=code).inc()

    def increment_idempotency_replay(self) -> None:
        if self.enabled:
            self._replays.inc()

    def increment_lock_wait_timeout(self) -> None:
        if self.enabled:
            self._lock_timeouts.inc()

    def increment_sale_created(self, sale_kind: str) -> None:
        if self.enabled:
            self._sales.labels(tipo_venta=sale_kind).inc()

    def increment_receivable_payment(self, tender: str) -> None:
        if self.enabled:
            self._payments.labels(metodo_pago=tender).inc()

    def record_register_closing(self, sales_moved: int) -> None:
        if not self.enabled:
            return
        self._closings.inc()
        self._closed_sales.inc(sales_moved)

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
