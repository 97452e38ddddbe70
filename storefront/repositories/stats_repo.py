# storefront/repositories/stats_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.order import Order
from storefront.models.product import Category, Product
from storefront.models.user import User


class StatsRepository:
    """
    Read-only aggregated queries for admin dashboard.
    """

    def count_users(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User)
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_admins(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User).where(User.roles == "Admin")
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_products(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(Product)).one()
        return int(value or 0)

    def count_categories(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(Category)).one()
        return int(value or 0)

    def count_orders(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(Order)).one()
        return int(value or 0)
