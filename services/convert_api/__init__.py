"""Audio Convert API - HTTP service.

FastAPI service converting one uploaded audio file per request.
"""

__all__: list[str] = []
