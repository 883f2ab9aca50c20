"""Analytics dashboard payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import CamelModel


class DashboardTotals(CamelModel):
    projects: int
    articles: int
    contacts: int
    published_projects: int
    published_articles: int
    unread_contacts: int
    recent_views: int


class PopularResource(CamelModel):
    id: str
    title: str
    slug: str
    featured_image: Optional[str] = None
    views: int


class DailyViews(CamelModel):
    date: str
    views: int


class MonthlyStat(CamelModel):
    month: str
    type: str
    count: int


class DashboardAnalytics(CamelModel):
    totals: DashboardTotals
    popular_projects: list[PopularResource] = Field(default_factory=list)
    popular_articles: list[PopularResource] = Field(default_factory=list)
    daily_views: list[DailyViews] = Field(default_factory=list)
    monthly_stats: list[MonthlyStat] = Field(default_factory=list)


class ResourceAnalytics(CamelModel):
    total_views: int
    daily_breakdown: list[DailyViews] = Field(default_factory=list)


__all__ = [
    "DailyViews",
    "DashboardAnalytics",
    "DashboardTotals",
    "MonthlyStat",
    "PopularResource",
    "ResourceAnalytics",
]
