"""Thin API launcher.

uvicorn entrypoint; application logic lives in the quotary package.
Run with: uvicorn apps.api.main:app --reload

The app is built here rather than in quotary.app so that importing
create_app has no settings side effects.
"""

from quotary.app import add_request_id_middleware, create_app

app = create_app()
# Added last so it runs outermost
add_request_id_middleware(app)

__all__ = ["app"]
