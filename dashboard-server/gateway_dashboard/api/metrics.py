from fastapi import APIRouter, Request, Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest, CONTENT_TYPE_LATEST
from gateway_dashboard.models.view import ConnectivityState
from gateway_dashboard.services.submission import SubmissionHandler
from gateway_dashboard.services.sync_loop import SyncLoop

router = APIRouter()

@router.get("/metrics")
def metrics(request: Request):
    loop: SyncLoop = getattr(request.app.state, "sync_loop", None)
    handler: SubmissionHandler = getattr(request.app.state, "submission", None)
    if not loop:
        return Response(content=b"", media_type=CONTENT_TYPE_LATEST)

    reg = CollectorRegistry()
    g_ticks = Gauge("gateway_dashboard_ticks", "Refresh ticks by outcome", ["outcome"], registry=reg)
    g_fail  = Gauge("gateway_dashboard_refresh_failures", "Failed secondary fetches", ["endpoint"], registry=reg)
    g_conn  = Gauge("gateway_dashboard_connected", "1 when the last metrics fetch succeeded", registry=reg)
    g_subs  = Gauge("gateway_dashboard_submissions", "Message submissions by outcome", ["outcome"], registry=reg)

    for outcome in ("connected", "disconnected", "skipped"):
        g_ticks.labels(outcome=outcome).set(loop.stats[outcome])
    g_fail.labels(endpoint="messages").set(loop.stats["messages_failed"])
    g_fail.labels(endpoint="topics").set(loop.stats["topics_failed"])
    g_conn.set(1 if loop.state is ConnectivityState.CONNECTED else 0)

    if handler:
        for outcome, count in handler.stats.items():
            g_subs.labels(outcome=outcome).set(count)

    return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)
