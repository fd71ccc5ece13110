# Services are imported lazily to avoid importing google-genai at package import time.
# Import specific services where needed:
# from services.analysis import AnalysisRequestBuilder
# from services.render import RenderRequestBuilder
# from services.persistence import build_save_request, submit_save_request

__all__ = []
