# storefront/services/address_selection.py
import logging
from typing import Protocol

from storefront.core.errors import AddressLookupError
from storefront.schemas.address import District, Province, Ward

logger = logging.getLogger(__name__)


class AddressResolver(Protocol):
    def load_provinces(self) -> list[Province]: ...

    def load_districts(self, province_code: str) -> list[District]: ...

    def load_wards(self, district_code: str) -> list[Ward]: ...


class AddressSelection:
    """
    Cascading province -> district -> ward selection for one form session.

    States: Empty -> ProvinceChosen -> DistrictChosen -> WardChosen.

    Rules:
      - Setting a level (to a new code, or back to "") clears every level
        below it, selection and options, before any child data arrives.
      - Child lists are requested under a ticket. A result delivered with a
        superseded ticket is dropped (last request wins).
      - A failed load leaves that level's options empty; levels already
        loaded stay usable.
      - No upward validation: a ward is never re-checked against the
        district. Correctness comes from clear-on-change alone.

    Two ways to drive it:
      - choose_*(): select and load children synchronously via the resolver
        (RuntimeError when built without one).
      - set_*() + districts_loaded()/wards_loaded(): the caller performs the
        fetch itself (e.g. concurrently) and hands the result back.
    """

    def __init__(self, resolver: AddressResolver | None = None):
        self.resolver = resolver

        self.selected_province = ""
        self.selected_district = ""
        self.selected_ward = ""

        self.provinces: list[Province] = []
        self.districts: list[District] = []
        self.wards: list[Ward] = []

        self._district_ticket = 0
        self._ward_ticket = 0

    @property
    def state(self) -> str:
        if self.selected_ward:
            return "WardChosen"
        if self.selected_district:
            return "DistrictChosen"
        if self.selected_province:
            return "ProvinceChosen"
        return "Empty"

    def is_complete(self) -> bool:
        return bool(self.selected_province and self.selected_district and self.selected_ward)

    # ----- Selection events -----

    def set_province(self, code: str) -> int:
        """
        Select a province and clear district + ward.

        Returns the ticket to pass to districts_loaded().
        """
        self.selected_province = code
        self.selected_district = ""
        self.selected_ward = ""
        self.districts = []
        self.wards = []
        self._district_ticket += 1
        # Pending ward loads belong to a district that is no longer selected
        self._ward_ticket += 1
        return self._district_ticket

    def set_district(self, code: str) -> int:
        """
        Select a district and clear the ward.

        Returns the ticket to pass to wards_loaded().
        """
        self.selected_district = code
        self.selected_ward = ""
        self.wards = []
        self._ward_ticket += 1
        return self._ward_ticket

    def set_ward(self, code: str) -> None:
        self.selected_ward = code

    # ----- Load results -----

    def districts_loaded(self, ticket: int, districts: list[District]) -> bool:
        """Accept a district list unless a newer province pick superseded it."""
        if ticket != self._district_ticket or not self.selected_province:
            return False
        self.districts = list(districts)
        return True

    def wards_loaded(self, ticket: int, wards: list[Ward]) -> bool:
        """Accept a ward list unless a newer district pick superseded it."""
        if ticket != self._ward_ticket or not self.selected_district:
            return False
        self.wards = list(wards)
        return True

    # ----- Resolver-driven helpers -----

    def _require_resolver(self) -> AddressResolver:
        if self.resolver is None:
            raise RuntimeError(
                "AddressSelection has no resolver; use set_*() and hand results "
                "back via districts_loaded()/wards_loaded()"
            )
        return self.resolver

    def load_provinces(self) -> list[Province]:
        resolver = self._require_resolver()
        try:
            self.provinces = resolver.load_provinces()
        except AddressLookupError:
            logger.warning("Province list unavailable")
            self.provinces = []
        return self.provinces

    def choose_province(self, code: str) -> None:
        resolver = self._require_resolver()
        ticket = self.set_province(code)
        if not code:
            return
        try:
            districts = resolver.load_districts(code)
        except AddressLookupError:
            logger.warning("District list unavailable for province %s", code)
            districts = []
        self.districts_loaded(ticket, districts)

    def choose_district(self, code: str) -> None:
        resolver = self._require_resolver()
        ticket = self.set_district(code)
        if not code:
            return
        try:
            wards = resolver.load_wards(code)
        except AddressLookupError:
            logger.warning("Ward list unavailable for district %s", code)
            wards = []
        self.wards_loaded(ticket, wards)

    def choose_ward(self, code: str) -> None:
        self.set_ward(code)
