# storefront/routers/address.py
from fastapi import APIRouter, Depends

from storefront.core.address_client import AddressDirectoryClient, get_address_client
from storefront.schemas.address import District, Province, Ward
from storefront.schemas.common import ApiResponse

router = APIRouter(prefix="/address", tags=["Address"])


@router.get("/provinces", response_model=ApiResponse[list[Province]])
def list_provinces(client: AddressDirectoryClient = Depends(get_address_client)):
    """
    All provinces. 503 if the directory stays unreachable after retries.
    """
    return ApiResponse(message="Provinces loaded", data=client.load_provinces())


@router.get(
    "/provinces/{province_code}/districts",
    response_model=ApiResponse[list[District]],
)
def list_districts(
    province_code: str,
    client: AddressDirectoryClient = Depends(get_address_client),
):
    return ApiResponse(message="Districts loaded", data=client.load_districts(province_code))


@router.get(
    "/districts/{district_code}/wards",
    response_model=ApiResponse[list[Ward]],
)
def list_wards(
    district_code: str,
    client: AddressDirectoryClient = Depends(get_address_client),
):
    return ApiResponse(message="Wards loaded", data=client.load_wards(district_code))
