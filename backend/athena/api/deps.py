"""
FastAPI dependencies.

Components never look settings up themselves: the dependency layer builds
them from get_settings() and hands them over, so tests can override
get_db / get_gateway with fakes.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from athena.config import Settings, get_settings
from athena.db.session import get_db
from athena.services.gateway import AnthropicGateway, CompletionGateway


@lru_cache
def _anthropic_gateway() -> AnthropicGateway:
    return AnthropicGateway(get_settings())


def get_gateway() -> CompletionGateway:
    """FastAPI dependency for the completion gateway (one client per process)."""
    return _anthropic_gateway()


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
Gateway = Annotated[CompletionGateway, Depends(get_gateway)]
AppSettings = Annotated[Settings, Depends(get_settings)]
