"""Redis implementations of the mapping and account stores.

Key layout (see RedisKeySchema):
    <prefix>:links:<code>           JSON mapping, written with SET NX
    <prefix>:users:<subject>:links  list of codes owned by the subject
    <prefix>:users:email:<email>    JSON account record, written with SET NX

The mapping insert and the owner index update run in one Lua script so a
mapping is never visible without its owner entry.
"""

from __future__ import annotations

import json
import logging

import redis

from shortener.adapters.redis_support import RedisKeySchema, handle_redis_errors
from shortener.adapters.storage.base import AbstractMappingStore, AbstractUserStore
from shortener.core.errors import EmailAlreadyRegisteredError, ShortCodeConflictError
from shortener.models import ShortCodeMapping, UserRecord

logger = logging.getLogger(__name__)

# KEYS[1] = link key, KEYS[2] = owner index key
# ARGV[1] = serialized mapping, ARGV[2] = code
STORE_MAPPING_LUA = """
if redis.call('SET', KEYS[1], ARGV[1], 'NX') then
    redis.call('RPUSH', KEYS[2], ARGV[2])
    return 1
end
return 0
"""


def _mapping_to_json(mapping: ShortCodeMapping) -> str:
    return json.dumps(
        {"code": mapping.code, "target_url": mapping.target_url, "owner_id": mapping.owner_id}
    )


def _mapping_from_json(raw: str) -> ShortCodeMapping:
    data = json.loads(raw)
    return ShortCodeMapping(code=data["code"], target_url=data["target_url"], owner_id=data["owner_id"])


class RedisMappingStore(AbstractMappingStore):
    """Mapping store backed by Redis; SET NX is the uniqueness constraint.

    Attributes:
        redis (redis.Redis): Client used to communicate with Redis.
        keys (RedisKeySchema): Key schema helper for namespaced keys.
    """

    def __init__(self, client: redis.Redis, *, prefix: str | None = None) -> None:
        self.redis = client
        self.keys = RedisKeySchema(prefix)
        self._store_script = client.register_script(STORE_MAPPING_LUA)

    @handle_redis_errors
    def exists(self, code: str) -> bool:
        return bool(self.redis.exists(self.keys.link_key(code)))

    @handle_redis_errors
    def store(self, mapping: ShortCodeMapping) -> None:
        created = self._store_script(
            keys=[self.keys.link_key(mapping.code), self.keys.owner_links_key(mapping.owner_id)],
            args=[_mapping_to_json(mapping), mapping.code],
        )
        if not int(created):
            raise ShortCodeConflictError(
                code="short_code_conflict",
                message="Short URL already exists",
                details={"short_code": mapping.code},
            )

    @handle_redis_errors
    def find_by_code(self, code: str) -> ShortCodeMapping | None:
        raw = self.redis.get(self.keys.link_key(code))
        if raw is None:
            return None
        return _mapping_from_json(raw)

    @handle_redis_errors
    def find_by_owner(self, subject_id: str) -> list[ShortCodeMapping]:
        codes = self.redis.lrange(self.keys.owner_links_key(subject_id), 0, -1)
        if not codes:
            return []
        raw_mappings = self.redis.mget([self.keys.link_key(code) for code in codes])
        return [_mapping_from_json(raw) for raw in raw_mappings if raw is not None]


class RedisUserStore(AbstractUserStore):
    """Account store backed by Redis, keyed by lower-cased email."""

    def __init__(self, client: redis.Redis, *, prefix: str | None = None) -> None:
        self.redis = client
        self.keys = RedisKeySchema(prefix)

    @handle_redis_errors
    def find_by_email(self, email: str) -> UserRecord | None:
        raw = self.redis.get(self.keys.user_by_email_key(email))
        if raw is None:
            return None
        data = json.loads(raw)
        return UserRecord(
            subject_id=data["subject_id"],
            email=data["email"],
            password_digest=data["password_digest"],
            tier=data["tier"],
        )

    @handle_redis_errors
    def create(self, user: UserRecord) -> None:
        payload = json.dumps(
            {
                "subject_id": user.subject_id,
                "email": user.email,
                "password_digest": user.password_digest,
                "tier": user.tier,
            }
        )
        if not self.redis.set(self.keys.user_by_email_key(user.email), payload, nx=True):
            raise EmailAlreadyRegisteredError(
                code="email_already_registered",
                message="An account with this email already exists",
            )
