"""Pub/Sub push endpoint receiving build events."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from buildnotifier.api.deps import NotifierDep
from buildnotifier.core.exceptions import NotifierError
from buildnotifier.core.logging import get_logger
from buildnotifier.observability.tracing import TraceContext
from buildnotifier.schemas.common import APIResponse
from buildnotifier.schemas.pubsub import NotificationResult, PubSubPushRequest

logger = get_logger(__name__)

router = APIRouter(tags=["notifications"])


@router.post("/", response_model=APIResponse[NotificationResult])
async def receive_build_event(
    data: PubSubPushRequest,
    notifier: NotifierDep,
) -> APIResponse[NotificationResult] | JSONResponse:
    """Handle one build event pushed by Pub/Sub.

    Malformed envelopes are rejected with 400. Notifier failures return 500
    so the subscription can redeliver according to its own policy.
    """
    with TraceContext(data.message.message_id or None):
        try:
            build = data.message.to_build()
        except ValueError as e:
            logger.warning(
                "Rejected malformed build event",
                subscription=data.subscription,
                error=str(e),
            )
            raise HTTPException(status_code=400, detail=f"Invalid build event: {e}") from e

        try:
            outcome = await notifier.handle(build)
        except NotifierError as e:
            return JSONResponse(
                status_code=500,
                content={
                    "code": 500,
                    "message": f"Failed to send notification: {e.message}",
                    "data": e.to_dict(),
                },
            )

        return APIResponse(
            data=NotificationResult(
                build_id=build.id,
                delivered=outcome is not None,
                status_code=outcome.status_code if outcome is not None else None,
            )
        )
