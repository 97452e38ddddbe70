# storefront/repositories/setting_repo.py
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session, select

from storefront.models.setting import ShopSetting


class SettingRepository:

    def get(self, session: Session, key: str) -> ShopSetting | None:
        stmt = select(ShopSetting).where(ShopSetting.setting_key == key)
        return session.exec(stmt).first()

    def put(self, session: Session, key: str, value: dict[str, Any]) -> ShopSetting:
        row = self.get(session, key)
        if row is None:
            row = ShopSetting(setting_key=key, setting_value=value)
        else:
            row.setting_value = value
            row.updated_at = datetime.now(timezone.utc)
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
