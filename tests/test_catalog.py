import json

import pytest

from appstore_pricing.catalog import (
    CountryNotFoundInTier,
    FlattenedRecord,
    MalformedDatasetError,
    MissingTierError,
    PricingCatalog,
    get_catalog,
    load_catalog,
)
from appstore_pricing.catalog import pricing_catalog
from appstore_pricing.catalog.pricing_catalog import parse_dataset
from appstore_pricing.config.settings import Settings

ALTERNATE_STEMS = ["510", "530", "550", "560", "570", "580", "590"]

EXPECTED_COUNTRIES = [
    "HK", "PT", "HN", "PY", "HR", "HU", "QA", "ID", "IE", "IL", "AE", "IN",
    "ZA", "IS", "AL", "IT", "AM", "AR", "AT", "AU", "RO", "RU", "BE", "BG",
    "JP", "BH", "BO", "SA", "BR", "SE", "SG", "SI", "BY", "SK", "CA", "SV",
    "CH", "KR", "CL", "CN", "CO", "CR", "KZ", "TH", "CY", "CZ", "TR", "DE",
    "TW", "TZ", "DK", "LT", "LU", "LV", "DO", "UA", "EC", "US", "EE", "EG",
    "MT", "MX", "MY", "ES", "VN", "NG", "NI", "NL", "NO", "FI", "NZ", "FR",
    "GB", "GR", "GT", "PA", "PE", "PH", "PK", "PL",
]

EXPECTED_CURRENCIES = [
    "HKD", "EUR", "USD", "HRK", "HUF", "QAR", "IDR", "ILS", "AED", "INR",
    "ZAR", "AUD", "RON", "RUB", "BGN", "JPY", "SAR", "BRL", "SEK", "SGD",
    "CAD", "CHF", "KRW", "CLP", "CNY", "COP", "KZT", "THB", "CZK", "TRY",
    "TWD", "TZS", "DKK", "EGP", "MXN", "MYR", "VND", "NGN", "NOK", "NZD",
    "GBP", "PEN", "PHP", "PKR", "PLN",
]


def entry(country, currency, retail=0.99, wholesale=0.7, symbol="$"):
    return {
        "countryCode": country,
        "currencyCode": currency,
        "currencySymbol": symbol,
        "retailPrice": retail,
        "wholesalePrice": wholesale,
        "fRetailPrice": f"{symbol}{retail:.2f}",
        "fWholesalePrice": f"{symbol}{wholesale:.2f}",
    }


@pytest.fixture(scope="module")
def catalog():
    return load_catalog()


@pytest.fixture
def small_payload():
    return {
        "data": {
            "pricingTiers": [
                {
                    "tierStem": "1",
                    "tierName": "Tier 1",
                    "pricingInfo": [entry("US", "USD"), entry("DE", "EUR", 1.09, 0.65, "€")],
                },
                {
                    "tierStem": "2",
                    "tierName": "Tier 2",
                    "pricingInfo": [entry("FR", "EUR", 2.29, 1.34, "€"), entry("US", "USD", 1.99, 1.4)],
                },
                {
                    "tierStem": "1",
                    "tierName": "Duplicate Tier 1",
                    "pricingInfo": [entry("JP", "JPY", 120, 77, "¥")],
                },
            ]
        }
    }


def test_stems(catalog):
    stems = [str(n) for n in range(88)] + ALTERNATE_STEMS
    assert list(catalog.stems()) == stems


def test_stems_are_distinct_and_follow_tiers(catalog):
    stems = catalog.stems()
    assert len(set(stems)) == len(stems)
    assert stems == tuple(t.tier_stem for t in catalog.tiers())


def test_countries(catalog):
    assert list(catalog.countries()) == EXPECTED_COUNTRIES


def test_currencies(catalog):
    assert list(catalog.currencies()) == EXPECTED_CURRENCIES


def test_every_tier_prices_every_storefront(catalog):
    for tier in catalog.tiers():
        codes = [e.country_code for e in tier.pricing_info]
        assert len(codes) == len(set(codes)), f"Duplicate storefront in tier {tier.tier_stem}"
        assert codes == EXPECTED_COUNTRIES
    assert len(catalog) == 95 * 80


@pytest.mark.parametrize("country,tier,currency,retail,wholesale", [
    ("US", "0", "USD", 0, 0),
    ("US", "1", "USD", 0.99, 0.70),
    ("TW", "1", "TWD", 30, 20),
    ("MY", "1", "MYR", 3.9, 2.73),
])
def test_find_by(catalog, country, tier, currency, retail, wholesale):
    record = catalog.find_by(country=country, tier=tier)

    assert record.tier_stem == tier
    assert record.country_code == country
    assert record.currency_code == currency
    assert record.retail_price == pytest.approx(retail)
    assert record.wholesale_price == pytest.approx(wholesale)


def test_find_by_formats(catalog):
    us = catalog.find_by(country="US", tier="1")
    assert us.tier_name == "Tier 1"
    assert us.currency_symbol == "$"
    assert us.formatted_retail_price == "$0.99"
    assert us.formatted_wholesale_price == "$0.70"

    tw = catalog.find_by(country="TW", tier="590")
    assert tw.tier_name == "Alternate Tier 5"
    assert tw.formatted_retail_price == "NT$ 150"
    assert tw.formatted_wholesale_price == "NT$ 100"

    free = catalog.find_by(country="US", tier="0")
    assert free.tier_name == "Free"
    assert free.formatted_retail_price == "$0.00"


def test_find_by_is_idempotent(catalog):
    first = catalog.find_by(country="DE", tier="42")
    second = catalog.find_by(country="DE", tier="42")
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_find_by_round_trips_every_entry(catalog):
    for tier in catalog.tiers():
        for source in tier.pricing_info:
            record = catalog.find_by(country=source.country_code, tier=tier.tier_stem)
            assert record.tier_stem == tier.tier_stem
            assert record.tier_name == tier.tier_name
            assert record.country_code == source.country_code
            assert record.currency_code == source.currency_code
            assert record.retail_price == source.retail_price
            assert record.wholesale_price == source.wholesale_price


def test_find_by_missing_tier_raises(catalog):
    with pytest.raises(MissingTierError) as exc_info:
        catalog.find_by(country="US", tier="999")
    assert exc_info.value.tier == "999"
    assert "999" in str(exc_info.value)


def test_missing_tier_is_a_key_error(catalog):
    with pytest.raises(KeyError):
        catalog.get_tier("88")


def test_find_by_missing_country_returns_partial_record(catalog):
    record = catalog.find_by(country="ZZ", tier="5")

    assert record.tier_stem == "5"
    assert record.tier_name == "Tier 5"
    assert not record.matched
    assert record.currency_code is None
    assert record.retail_price is None
    assert record.to_dict() == {"tierStem": "5", "tierName": "Tier 5"}


def test_find_by_strict_raises_for_missing_country(catalog):
    with pytest.raises(CountryNotFoundInTier) as exc_info:
        catalog.find_by(country="ZZ", tier="5", strict=True)
    assert exc_info.value.country == "ZZ"
    assert exc_info.value.tier == "5"


def test_strict_catalog_default(small_payload):
    strict_catalog = PricingCatalog.from_dict(small_payload, strict=True)
    with pytest.raises(CountryNotFoundInTier):
        strict_catalog.find_by(country="JP", tier="1")
    # explicit argument wins over the catalog default
    assert not strict_catalog.find_by(country="JP", tier="1", strict=False).matched


def test_failed_lookup_leaves_catalog_usable(catalog):
    before = catalog.find_by(country="US", tier="1")
    with pytest.raises(MissingTierError):
        catalog.find_by(country="US", tier="nope")
    with pytest.raises(CountryNotFoundInTier):
        catalog.find_by(country="ZZ", tier="1", strict=True)
    assert catalog.find_by(country="US", tier="1") == before
    assert len(catalog.stems()) == 95


def test_first_match_wins_and_dedup_order(small_payload):
    small = PricingCatalog.from_dict(small_payload)

    assert small.stems() == ("1", "2", "1")
    assert small.countries() == ("US", "DE", "FR", "JP")
    assert small.currencies() == ("USD", "EUR", "JPY")
    assert small.get_tier("1").tier_name == "Tier 1"
    # JP only exists in the duplicate stem, which is never consulted
    assert not small.find_by(country="JP", tier="1").matched
    assert len(small) == 5


def test_tiers_round_trip_to_dataset_shape(small_payload):
    small = PricingCatalog.from_dict(small_payload)
    assert [t.to_dict() for t in small.tiers()] == small_payload["data"]["pricingTiers"]


@pytest.mark.parametrize("payload", [
    None,
    [],
    {},
    {"data": None},
    {"data": {}},
    {"data": {"pricingTiers": None}},
    {"data": {"pricingTiers": {"tierStem": "1"}}},
    {"data": {"pricingTiers": [{"tierStem": "1", "tierName": "Tier 1", "pricingInfo": []}]}},
    {"data": {"pricingTiers": [{"tierStem": 1, "tierName": "Tier 1", "pricingInfo": [entry("US", "USD")]}]}},
    {"data": {"pricingTiers": [{"tierStem": "1", "tierName": "Tier 1",
                                "pricingInfo": [{"countryCode": "US"}]}]}},
    {"data": {"pricingTiers": [{"tierStem": "1", "tierName": "Tier 1",
                                "pricingInfo": [dict(entry("US", "USD"), retailPrice="0.99")]}]}},
])
def test_malformed_dataset_degrades_to_empty(payload, caplog):
    with caplog.at_level("WARNING", logger="appstore_pricing.catalog"):
        empty = PricingCatalog.from_dict(payload)

    assert empty.tiers() == ()
    assert empty.stems() == ()
    assert empty.countries() == ()
    assert empty.currencies() == ()
    assert len(empty) == 0
    assert "Malformed pricing dataset" in caplog.text
    with pytest.raises(MissingTierError):
        empty.find_by(country="US", tier="1")


def test_parse_dataset_raises_malformed():
    with pytest.raises(MalformedDatasetError):
        parse_dataset({"data": {"pricingTiers": "nope"}})


def test_empty_tier_list_is_not_malformed():
    empty = PricingCatalog.from_dict({"data": {"pricingTiers": []}})
    assert empty.tiers() == ()


def test_from_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PricingCatalog.from_file(tmp_path / "missing.json")


def test_from_file_bad_json_degrades(tmp_path):
    path = tmp_path / "pricing_matrix.json"
    path.write_text("{not json", encoding="utf-8")
    assert PricingCatalog.from_file(path).tiers() == ()


def test_load_catalog_uses_settings(tmp_path, small_payload):
    path = tmp_path / "pricing_matrix.json"
    path.write_text(json.dumps(small_payload), encoding="utf-8")
    settings = Settings.load(pricing_matrix=path, strict_country_lookup=True)

    small = load_catalog(settings)
    assert small.stems() == ("1", "2", "1")
    assert small.strict


def test_settings_reject_unknown_override():
    with pytest.raises(TypeError):
        Settings.load(no_such_setting=True)


def test_to_frame(catalog):
    df = catalog.to_frame()
    assert len(df) == len(catalog)
    assert list(df.columns[:3]) == ["tier_stem", "tier_name", "country_code"]
    assert df.iloc[0]["tier_stem"] == "0"
    assert df.iloc[0]["country_code"] == "HK"

    us = catalog.to_frame(country="US")
    assert list(us["tier_stem"]) == list(catalog.stems())

    eur_tier_1 = catalog.to_frame(currency="EUR", tier="1")
    assert set(eur_tier_1["currency_code"]) == {"EUR"}
    assert len(eur_tier_1) == 19


def test_storefronts_cover_every_tier(small_payload):
    storefronts = PricingCatalog.from_dict(small_payload).storefronts()

    assert list(storefronts.columns) == ["country_code", "currency_code", "currency_symbol"]
    # FR only appears in tier 2, JP only in the duplicate tier
    assert list(storefronts["country_code"]) == ["US", "DE", "FR", "JP"]
    assert list(storefronts["currency_code"]) == ["USD", "EUR", "EUR", "JPY"]


def test_storefronts_match_countries(catalog):
    storefronts = catalog.storefronts()
    assert tuple(storefronts["country_code"]) == catalog.countries()
    assert storefronts.set_index("country_code").loc["TW", "currency_code"] == "TWD"


def test_get_catalog_loads_once(monkeypatch):
    calls = []
    real_load = pricing_catalog.load_catalog

    def counting_load(settings=None):
        calls.append(settings)
        return real_load(settings)

    monkeypatch.setattr(pricing_catalog, "_catalog", None)
    monkeypatch.setattr(pricing_catalog, "load_catalog", counting_load)

    first = get_catalog()
    second = get_catalog()

    assert first is second
    assert len(calls) == 1
    assert len(first.tiers()) == 95


def test_flattened_record_merge():
    tier = PricingCatalog.from_dict({"data": {"pricingTiers": [
        {"tierStem": "3", "tierName": "Tier 3", "pricingInfo": [entry("US", "USD", 2.99, 2.1)]},
    ]}}).get_tier("3")

    record = FlattenedRecord.merge(tier, tier.pricing_info[0])
    assert record.matched
    assert record.to_dict() == {
        "tierStem": "3",
        "tierName": "Tier 3",
        "countryCode": "US",
        "currencyCode": "USD",
        "currencySymbol": "$",
        "retailPrice": 2.99,
        "wholesalePrice": 2.1,
        "fRetailPrice": "$2.99",
        "fWholesalePrice": "$2.10",
    }
