"""View tracking and dashboard aggregates."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..errors import ValidationError
from ..repository import ContentRepository, Record, to_db_timestamp
from ..schemas.analytics import (
    DailyViews,
    DashboardAnalytics,
    DashboardTotals,
    MonthlyStat,
    PopularResource,
    ResourceAnalytics,
)

logger = logging.getLogger(__name__)

TIMEFRAMES: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_TIMEFRAME = "30d"
TRACKED_RESOURCES: dict[str, str] = {"project": "projects", "article": "articles"}


class AnalyticsService:
    def __init__(self, repository: ContentRepository) -> None:
        self._repository = repository

    async def record_event(
        self,
        event_type: str,
        *,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        path: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Record:
        return await self._repository.create(
            "analytics",
            {
                "type": event_type,
                "resource_id": resource_id or None,
                "resource_type": resource_type or None,
                "path": path,
                "user_agent": user_agent,
                "ip_address": ip_address,
            },
        )

    async def record_view_quietly(self, event_type: str, **details: Optional[str]) -> None:
        """Record a view from a background task; failures are only logged."""

        try:
            await self.record_event(event_type, **details)
        except Exception:
            logger.warning("Failed to record %s event", event_type, exc_info=True)

    async def dashboard(self) -> DashboardAnalytics:
        now = datetime.now(timezone.utc)
        last_30_days = now - timedelta(days=30)

        totals = DashboardTotals(
            projects=await self._repository.count("projects"),
            articles=await self._repository.count("articles"),
            contacts=await self._repository.count("contact_submissions"),
            published_projects=await self._repository.count(
                "projects", "published_at IS NOT NULL"
            ),
            published_articles=await self._repository.count(
                "articles", "published_at IS NOT NULL"
            ),
            unread_contacts=await self._repository.count("contact_submissions", "is_read = 0"),
            recent_views=await self._repository.count(
                "analytics", "created_at >= ?", (to_db_timestamp(last_30_days),)
            ),
        )

        monthly: list[MonthlyStat] = []
        since_year = now - timedelta(days=365)
        for kind, table in (("projects", "projects"), ("articles", "articles")):
            for row in await self._repository.monthly_created(table, since=since_year):
                monthly.append(MonthlyStat(month=row["month"], type=kind, count=row["count"]))
        monthly.sort(key=lambda item: item.month, reverse=True)

        return DashboardAnalytics(
            totals=totals,
            popular_projects=await self._popular("project_view", "projects", since=last_30_days),
            popular_articles=await self._popular("article_view", "articles", since=last_30_days),
            daily_views=[
                DailyViews(**row)
                for row in await self._repository.daily_views(since=now - timedelta(days=14))
            ],
            monthly_stats=monthly,
        )

    async def resource(
        self, resource_type: str, resource_id: str, *, timeframe: str = DEFAULT_TIMEFRAME
    ) -> ResourceAnalytics:
        if resource_type not in TRACKED_RESOURCES:
            raise ValidationError(f"Unsupported resource type: {resource_type}")
        days = TIMEFRAMES.get(timeframe, TIMEFRAMES[DEFAULT_TIMEFRAME])
        breakdown = await self._repository.daily_views(
            since=datetime.now(timezone.utc) - timedelta(days=days),
            event_type=f"{resource_type}_view",
            resource_id=resource_id,
        )
        return ResourceAnalytics(
            total_views=sum(row["views"] for row in breakdown),
            daily_breakdown=[DailyViews(**row) for row in breakdown],
        )

    async def _popular(
        self, event_type: str, table: str, *, since: datetime
    ) -> list[PopularResource]:
        popular: list[PopularResource] = []
        for resource_id, views in await self._repository.top_viewed_resources(
            event_type, since=since
        ):
            record = await self._repository.get(table, resource_id)
            if record is None:
                continue
            popular.append(
                PopularResource(
                    id=record["id"],
                    title=record["title"],
                    slug=record["slug"],
                    featured_image=record.get("featured_image"),
                    views=views,
                )
            )
        return popular


__all__ = ["AnalyticsService", "DEFAULT_TIMEFRAME", "TIMEFRAMES", "TRACKED_RESOURCES"]
