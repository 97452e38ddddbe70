# storefront/models/setting.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class ShopSetting(SQLModel, table=True):
    """
    Key/value shop configuration editable from the admin panel.

    Known keys:
      - "momo": {name, account_number, qr_image_url, instructions}
    """

    __tablename__ = "shop_settings"

    id: int | None = Field(default=None, primary_key=True)

    setting_key: str = Field(
        max_length=100,
        unique=True,
        index=True,
    )

    setting_value: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
