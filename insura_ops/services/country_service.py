"""Country reference data."""

from insura_ops.schemas.entities import Country, CountryCreate, CountryRow, CountryUpdate, country_from_row
from insura_ops.services.base_service import BaseService


class CountryService(BaseService[Country]):
    table = "countries"
    row_model = CountryRow
    create_model = CountryCreate
    update_model = CountryUpdate
    search_columns = ("name", "code")
    default_sort = "name"

    def from_row(self, row: CountryRow) -> Country:
        return country_from_row(row)
