"""API dependency injection."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from buildnotifier.notifier import HTTPNotifier


def get_notifier(request: Request) -> HTTPNotifier:
    """Get the notifier configured for this application."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        raise HTTPException(status_code=503, detail="Notifier is not set up")
    return notifier


# Type aliases for dependency injection
NotifierDep = Annotated[HTTPNotifier, Depends(get_notifier)]
