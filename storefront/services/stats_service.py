# storefront/services/stats_service.py
from sqlmodel import Session

from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import AdminDashboardStats, DashboardCounts


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(self, session: Session) -> AdminDashboardStats:
        total_users = self.repo.count_users(session)
        admin_users = self.repo.count_admins(session)

        return AdminDashboardStats(
            stats=DashboardCounts(
                totalUsers=total_users,
                adminUsers=admin_users,
                regularUsers=total_users - admin_users,
                totalProducts=self.repo.count_products(session),
                totalCategories=self.repo.count_categories(session),
                totalOrders=self.repo.count_orders(session),
            )
        )
