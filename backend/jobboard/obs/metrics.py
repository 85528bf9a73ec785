"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"jobboard_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"jobboard_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

MODERATION_CHECKS_TOTAL = Counter(
	"jobboard_moderation_checks_total",
	"Content checks evaluated by an enforcement gate",
	["gate", "outcome"],
)

MODERATION_VIOLATIONS_TOTAL = Counter(
	"jobboard_moderation_violations_total",
	"Violations recorded in actor ledgers",
	["gate", "reason"],
)

MODERATION_SUSPENSIONS_TOTAL = Counter(
	"jobboard_moderation_suspensions_total",
	"Temporary suspensions started after repeated violations",
	["gate"],
)

MODERATION_STORE_ERRORS_TOTAL = Counter(
	"jobboard_moderation_store_errors_total",
	"Ledger storage failures handled by failing open",
	["store", "op"],
)

MODERATION_SPAM_ACTIONS_TOTAL = Counter(
	"jobboard_moderation_spam_actions_total",
	"Moderation actions derived from spam and hate scores",
	["action"],
)

MODERATION_RESETS_TOTAL = Counter(
	"jobboard_moderation_resets_total",
	"Administrative ledger resets",
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_moderation_check(gate: str, outcome: str) -> None:
	MODERATION_CHECKS_TOTAL.labels(gate=gate, outcome=outcome).inc()


def inc_moderation_violation(gate: str, reason: str) -> None:
	MODERATION_VIOLATIONS_TOTAL.labels(gate=gate, reason=reason).inc()


def inc_moderation_suspension(gate: str) -> None:
	MODERATION_SUSPENSIONS_TOTAL.labels(gate=gate).inc()


def inc_moderation_store_error(store: str, op: str) -> None:
	MODERATION_STORE_ERRORS_TOTAL.labels(store=store, op=op).inc()


def inc_moderation_spam_action(action: str) -> None:
	MODERATION_SPAM_ACTIONS_TOTAL.labels(action=action).inc()


def inc_moderation_reset() -> None:
	MODERATION_RESETS_TOTAL.inc()
