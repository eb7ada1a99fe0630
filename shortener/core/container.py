"""Service wiring.

All stateful components are built once per application by ``build_container``
and hung on ``app.state.container``; route dependencies read them from there,
so each app instance (and each test app) owns its own quota and mapping state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fastapi import Request

from shortener.adapters.factory import Stores, create_stores
from shortener.core.admission import AdmissionPipeline
from shortener.core.config import Settings
from shortener.services.account_service import AccountService
from shortener.services.code_allocator import CodeAllocator
from shortener.services.link_service import LinkService
from shortener.services.passwords import PasswordHasher
from shortener.services.quota_tracker import QuotaTracker
from shortener.services.token_codec import TokenCodec


@dataclass
class ServiceContainer:
    settings: Settings
    stores: Stores
    codec: TokenCodec
    tracker: QuotaTracker
    allocator: CodeAllocator
    pipeline: AdmissionPipeline
    accounts: AccountService
    links: LinkService


def build_container(
    settings: Settings,
    stores: Stores | None = None,
    *,
    reserved_codes: Iterable[str] = (),
) -> ServiceContainer:
    """Build every service from settings.

    Args:
        settings: Resolved application settings.
        stores: Pre-built stores (tests); created from ``settings.store`` when omitted.
        reserved_codes: Short codes the allocator must never hand out.
    """
    stores = stores or create_stores(settings.store)

    codec = TokenCodec.from_settings(settings.auth)
    tracker = QuotaTracker.from_settings(stores.quotas, settings.quota)
    allocator = CodeAllocator.from_settings(
        stores.mappings, settings.shortcode, reserved_codes=reserved_codes
    )
    hasher = PasswordHasher(rounds=settings.auth.bcrypt_rounds)

    return ServiceContainer(
        settings=settings,
        stores=stores,
        codec=codec,
        tracker=tracker,
        allocator=allocator,
        pipeline=AdmissionPipeline(codec, tracker),
        accounts=AccountService(stores.users, hasher, codec),
        links=LinkService(stores.mappings, allocator),
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's service container."""
    return request.app.state.container
