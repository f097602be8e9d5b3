"""Data access for the statistics engine and the translation orchestrator.

``TranslationRepository`` is the narrow port the core depends on; the
SQLAlchemy implementation enforces the (key, locale) uniqueness through
``INSERT ... ON CONFLICT DO UPDATE`` so repeated runs never duplicate rows.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List, Optional, TypedDict
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from localehub.models.feature import Feature
from localehub.models.key import LocalizationKey
from localehub.models.language import Language
from localehub.models.project import Project
from localehub.models.translation import Translation
from localehub.services.scope import Scope, ScopeKind

logger = logging.getLogger(__name__)


class TranslationWrite(TypedDict):
    locale: str
    value: Optional[str]
    is_reviewed: bool


class TranslationRepository(ABC):
    """Read/write access to keys, translations, features and languages."""

    @abstractmethod
    async def find_key(self, key_id: UUID) -> Optional[LocalizationKey]:
        """Return the key with its translations and feature loaded."""

    @abstractmethod
    async def find_feature(self, feature_id: UUID) -> Optional[Feature]:
        pass

    @abstractmethod
    async def find_project(self, project_id: UUID) -> Optional[Project]:
        pass

    @abstractmethod
    async def list_keys_in_scope(self, scope: Scope) -> List[LocalizationKey]:
        """Return keys in scope, each with translations and feature loaded."""

    @abstractmethod
    async def list_active_locales(self, scope: Scope) -> List[Language]:
        pass

    @abstractmethod
    async def upsert_many(self, key_id: UUID, items: List[TranslationWrite]) -> List[Translation]:
        """Write several locales of one key atomically: all land or none do."""

    async def reset(self) -> None:
        """Discard a failed unit of work so later calls start clean."""

    async def upsert_translation(
        self,
        key_id: UUID,
        locale: str,
        value: Optional[str],
        is_reviewed: bool = False,
    ) -> Translation:
        rows = await self.upsert_many(
            key_id, [{"locale": locale, "value": value, "is_reviewed": is_reviewed}]
        )
        return rows[0]


class SqlTranslationRepository(TranslationRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _key_query(self):
        # populate_existing: upserts go through Core and bypass the identity map
        return (
            select(LocalizationKey)
            .options(
                selectinload(LocalizationKey.translations),
                selectinload(LocalizationKey.feature),
            )
            .execution_options(populate_existing=True)
        )

    async def find_key(self, key_id: UUID) -> Optional[LocalizationKey]:
        result = await self.session.execute(self._key_query().where(LocalizationKey.id == key_id))
        return result.scalar_one_or_none()

    async def find_feature(self, feature_id: UUID) -> Optional[Feature]:
        return await self.session.get(Feature, feature_id)

    async def find_project(self, project_id: UUID) -> Optional[Project]:
        return await self.session.get(Project, project_id)

    async def list_keys_in_scope(self, scope: Scope) -> List[LocalizationKey]:
        query = self._key_query()
        if scope.kind is ScopeKind.FEATURE:
            query = query.where(LocalizationKey.feature_id == scope.feature_id)
        elif scope.kind is ScopeKind.PROJECT:
            query = query.join(Feature, LocalizationKey.feature_id == Feature.id).where(
                Feature.project_id == scope.project_id
            )
        query = query.order_by(LocalizationKey.created_at, LocalizationKey.name, LocalizationKey.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_active_locales(self, scope: Scope) -> List[Language]:
        query = select(Language).where(Language.is_active.is_(True))
        if scope.kind is not ScopeKind.ALL:
            query = query.where(Language.project_id == scope.project_id)
        result = await self.session.execute(query.order_by(Language.locale, Language.project_id))
        return list(result.scalars().all())

    async def reset(self) -> None:
        await self.session.rollback()

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(Translation)
        if dialect == "sqlite":
            return sqlite_insert(Translation)
        raise RuntimeError(f"Translation upsert is not supported on {dialect}")

    async def upsert_many(self, key_id: UUID, items: List[TranslationWrite]) -> List[Translation]:
        if not items:
            return []

        # A statement may touch each (key, locale) row only once; the last write wins
        latest = {item["locale"]: item for item in items}

        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": uuid.uuid4(),
                "key_id": key_id,
                "locale": item["locale"],
                "value": item["value"],
                "is_reviewed": item["is_reviewed"],
                "created_at": now,
                "updated_at": now,
            }
            for item in latest.values()
        ]
        stmt = self._insert().values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key_id", "locale"],
            set_={
                "value": stmt.excluded.value,
                "is_reviewed": stmt.excluded.is_reviewed,
                "updated_at": stmt.excluded.updated_at,
            },
        )

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error(f"Upsert of {len(items)} translations for key {key_id} rolled back")
            raise

        return await self._load_translations(key_id, latest.keys())

    async def _load_translations(self, key_id: UUID, locales: Iterable[str]) -> List[Translation]:
        wanted = list(dict.fromkeys(locales))
        result = await self.session.execute(
            select(Translation)
            .where(Translation.key_id == key_id, Translation.locale.in_(wanted))
            .execution_options(populate_existing=True)
        )
        by_locale = {row.locale: row for row in result.scalars().all()}
        return [by_locale[locale] for locale in wanted if locale in by_locale]
