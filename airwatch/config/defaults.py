"""Default city configurations with WAQI station identifiers."""

from airwatch.config.schema import CityConfig

DEFAULT_CITIES: list[CityConfig] = [
    CityConfig(name="Sarajevo", slug="sarajevo", station_id="@10557"),
    CityConfig(name="Tuzla", slug="tuzla", station_id="@8739"),
    CityConfig(name="Zenica", slug="zenica", station_id="@8740"),
    CityConfig(name="Mostar", slug="mostar", station_id="@8741"),
    CityConfig(name="Travnik", slug="travnik", station_id="@8742"),
    CityConfig(name="Bihac", slug="bihac", station_id="@8743"),
]
