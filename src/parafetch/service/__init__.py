"""Fetch capability implementations shipped with parafetch."""

from parafetch.service.mock import MockApiService

__all__ = ["MockApiService"]
