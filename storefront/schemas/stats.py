# storefront/schemas/stats.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class DashboardCounts(SQLModel):
    """
    Headline numbers for the admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    totalUsers: int
    adminUsers: int
    regularUsers: int
    totalProducts: int
    totalCategories: int
    totalOrders: int


class AdminDashboardStats(SQLModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    stats: DashboardCounts
