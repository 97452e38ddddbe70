# storefront/schemas/address.py
from sqlmodel import SQLModel


class Province(SQLModel):
    code: str
    name: str


class District(SQLModel):
    code: str
    name: str
    province_code: str


class Ward(SQLModel):
    code: str
    name: str
    district_code: str
