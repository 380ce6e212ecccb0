from typing import Annotated, cast

from fastapi import Depends, Request

from pgregistry.app import App


async def get_app(request: Request) -> App:
    """App instance stored on the FastAPI state by the lifespan handler."""
    return cast(App, request.app.state.app)


AppDep = Annotated[App, Depends(get_app)]
