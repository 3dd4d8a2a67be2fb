"""ASGI entrypoint: uvicorn roomhold.api.app:app"""

from roomhold.api.factory import create_app

app = create_app()
