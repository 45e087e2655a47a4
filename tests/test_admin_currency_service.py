"""
Admin currency service tests against a SQLite database, plus mocked-session
tests for the failure paths.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from fx_catalog.core.exceptions import (
    BaseCurrencyProtectedError,
    DuplicateCodeError,
    InputValidationError,
    NotFoundError,
    StorageError,
)
from fx_catalog.db.repositories.currency_repository import CurrencyRepository
from fx_catalog.services.admin_currency_service import AdminCurrencyService, is_unique_violation

from conftest import TODAY, rates_for_target


def make_service(session, today=TODAY):
    return AdminCurrencyService(session, base_currency_code="USD", today=lambda: today)


@pytest.mark.asyncio
async def test_add_currency_shows_up_with_latest_rate(test_db_session):
    """Adding JPY at 140 makes it appear in the admin listing with latest_rate 140."""
    service = make_service(test_db_session)

    result = await service.add_currency("JPY", "Japanese Yen", 140)

    assert result.currency.code == "JPY"
    assert result.rate.rate == 140
    assert result.rate.effective_date == TODAY

    currencies = await service.list_all_currencies()
    jpy = next(c for c in currencies if c.code == "JPY")
    assert jpy.latest_rate == 140
    assert jpy.rate_date == TODAY


@pytest.mark.asyncio
async def test_list_all_currencies_orders_by_id_and_keeps_currencies_without_rates(test_db_session):
    service = make_service(test_db_session)
    await service.add_currency("THB", "Thai Baht", 35.5)
    await service.add_currency("EUR", "Euro", 0.92)

    currencies = await service.list_all_currencies()

    assert [c.code for c in currencies] == ["USD", "THB", "EUR"]
    usd = currencies[0]
    assert usd.latest_rate is None
    assert usd.rate_date is None


@pytest.mark.asyncio
async def test_add_same_currency_twice_on_one_day_keeps_a_single_rate(test_db_session):
    service = make_service(test_db_session)

    first = await service.add_currency("JPY", "Japanese Yen", 140)
    second = await service.add_currency("jpy", "Yen", 150)

    assert second.currency.id == first.currency.id
    assert second.currency.name == "Yen"

    rates = await rates_for_target(test_db_session, first.currency.id)
    assert len(rates) == 1
    assert rates[0].rate == 150
    assert rates[0].effective_date == TODAY


@pytest.mark.asyncio
async def test_add_on_a_later_day_appends_history(test_db_session):
    await make_service(test_db_session, date(2025, 1, 1)).add_currency("EUR", "Euro", 0.90)
    result = await make_service(test_db_session, date(2025, 1, 2)).add_currency("EUR", "Euro", 0.95)

    rates = await rates_for_target(test_db_session, result.currency.id)
    assert [(r.effective_date, r.rate) for r in rates] == [
        (date(2025, 1, 2), 0.95),
        (date(2025, 1, 1), 0.90),
    ]

    listed = await make_service(test_db_session).list_all_currencies()
    eur = next(c for c in listed if c.code == "EUR")
    assert eur.latest_rate == 0.95
    assert eur.rate_date == date(2025, 1, 2)


@pytest.mark.asyncio
async def test_add_currency_canonicalizes_code(test_db_session):
    result = await make_service(test_db_session).add_currency(" gbp ", " Pound Sterling ", "0.79")

    assert result.currency.code == "GBP"
    assert result.currency.name == "Pound Sterling"
    assert result.rate.rate == 0.79


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code, name, rate, field",
    [
        ("", "Euro", 1.0, "code"),
        ("EU", "Euro", 1.0, "code"),
        ("EURO", "Euro", 1.0, "code"),
        ("EUR", "", 1.0, "name"),
        ("EUR", "   ", 1.0, "name"),
        ("EUR", "Euro", 0, "rate"),
        ("EUR", "Euro", -5, "rate"),
        ("EUR", "Euro", "abc", "rate"),
        ("EUR", "Euro", float("inf"), "rate"),
        ("EUR", "Euro", float("nan"), "rate"),
        ("EUR", "Euro", None, "rate"),
        ("EUR", "Euro", 0.0000001, "rate"),
        ("EUR", "Euro", 1e12, "rate"),
        ("USD", "Renamed Dollar", 2.5, "code"),
        (" usd ", "Renamed Dollar", 2.5, "code"),
    ],
)
async def test_add_currency_rejects_invalid_input_before_writing(test_db_session, code, name, rate, field):
    service = make_service(test_db_session)

    with pytest.raises(InputValidationError) as exc_info:
        await service.add_currency(code, name, rate)

    assert exc_info.value.field == field
    assert exc_info.value.status_code == 400
    assert await CurrencyRepository(test_db_session).count_all() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("rate", [0.000001, 999999999999.0])
async def test_add_currency_accepts_rates_at_the_column_bounds(test_db_session, rate):
    result = await make_service(test_db_session).add_currency("EUR", "Euro", rate)

    assert result.rate.rate == rate


async def _assert_base_currency_untouched(session):
    usd = await CurrencyRepository(session).get_by_code("USD")
    assert usd.name == "US Dollar"
    assert await rates_for_target(session, usd.id) == []


@pytest.mark.asyncio
async def test_add_base_currency_is_rejected_before_writing(test_db_session):
    with pytest.raises(InputValidationError) as exc_info:
        await make_service(test_db_session).add_currency("USD", "Renamed Dollar", 2.5)

    assert exc_info.value.field == "code"
    assert exc_info.value.message == "Cannot modify base currency (USD)"
    await _assert_base_currency_untouched(test_db_session)


@pytest.mark.asyncio
async def test_update_base_currency_by_id_is_rejected(test_db_session):
    usd = await CurrencyRepository(test_db_session).get_by_code("USD")

    with pytest.raises(InputValidationError) as exc_info:
        await make_service(test_db_session).update_currency(usd.id, "XYZ", "Renamed Dollar", 2.5)

    assert exc_info.value.field == "code"
    assert exc_info.value.status_code == 400
    await _assert_base_currency_untouched(test_db_session)


@pytest.mark.asyncio
async def test_update_with_base_code_is_rejected_without_touching_the_store():
    session = MagicMock()
    session.execute = AsyncMock()

    with pytest.raises(InputValidationError) as exc_info:
        await make_service(session).update_currency(7, "usd", "Renamed Dollar", 2.5)

    assert exc_info.value.field == "code"
    session.execute.assert_not_called()


@pytest.mark.asyncio
async def test_update_currency_changes_name_and_rate_but_not_code(test_db_session):
    service = make_service(test_db_session)
    added = await service.add_currency("THB", "Thai Baht", 35.5)

    updated = await make_service(test_db_session, date(2025, 1, 16)).update_currency(
        added.currency.id, "XYZ", "Baht", 36.1
    )

    assert updated.currency.id == added.currency.id
    assert updated.currency.code == "THB"
    assert updated.currency.name == "Baht"
    assert updated.rate.rate == 36.1
    assert updated.rate.effective_date == date(2025, 1, 16)

    rates = await rates_for_target(test_db_session, added.currency.id)
    assert len(rates) == 2


@pytest.mark.asyncio
async def test_update_same_day_replaces_todays_rate(test_db_session):
    service = make_service(test_db_session)
    added = await service.add_currency("THB", "Thai Baht", 35.5)

    await service.update_currency(added.currency.id, "THB", "Thai Baht", 40)

    rates = await rates_for_target(test_db_session, added.currency.id)
    assert [(r.effective_date, r.rate) for r in rates] == [(TODAY, 40)]


@pytest.mark.asyncio
async def test_update_unknown_currency_raises_not_found(test_db_session):
    with pytest.raises(NotFoundError) as exc_info:
        await make_service(test_db_session).update_currency(999, "ABC", "Test", 10)

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Currency not found"


@pytest.mark.asyncio
async def test_update_validates_rate(test_db_session):
    added = await make_service(test_db_session).add_currency("THB", "Thai Baht", 35.5)

    with pytest.raises(InputValidationError):
        await make_service(test_db_session).update_currency(added.currency.id, "THB", "Thai Baht", -10)


@pytest.mark.asyncio
async def test_delete_currency_cascades_to_its_rates(test_db_session, seed_rate):
    service = make_service(test_db_session)
    currency_id = await seed_rate("EUR", "Euro", 0.90, date(2024, 12, 1))
    await seed_rate("EUR", "Euro", 0.95, date(2025, 1, 1))

    message = await service.delete_currency(currency_id)

    assert message == f"Currency EUR (ID: {currency_id}) deleted successfully"
    assert "EUR" not in [c.code for c in await service.list_all_currencies()]
    assert await rates_for_target(test_db_session, currency_id) == []


@pytest.mark.asyncio
async def test_delete_base_currency_is_refused(test_db_session):
    service = make_service(test_db_session)
    usd = await CurrencyRepository(test_db_session).get_by_code("USD")

    with pytest.raises(BaseCurrencyProtectedError) as exc_info:
        await service.delete_currency(usd.id)

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Cannot delete base currency (USD)"
    assert "USD" in [c.code for c in await service.list_all_currencies()]


@pytest.mark.asyncio
async def test_delete_unknown_currency_raises_not_found(test_db_session):
    with pytest.raises(NotFoundError) as exc_info:
        await make_service(test_db_session).delete_currency(999)

    assert exc_info.value.message == "Currency with ID 999 not found."


@pytest.mark.asyncio
async def test_delete_requires_an_id():
    session = MagicMock()
    session.execute = AsyncMock()

    with pytest.raises(InputValidationError) as exc_info:
        await make_service(session).delete_currency(None)

    assert exc_info.value.message == "Currency ID is required for deletion."
    session.execute.assert_not_called()


def _mock_session(*execute_effects):
    session = MagicMock()
    session.bind.dialect.name = "postgresql"
    session.execute = AsyncMock(side_effect=list(execute_effects))
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class UniqueViolation(Exception):
    sqlstate = "23505"


class NotNullViolation(Exception):
    sqlstate = "23502"


@pytest.mark.asyncio
async def test_add_currency_rolls_back_and_hides_storage_errors():
    session = _mock_session(OperationalError("SELECT", {}, Exception("connection reset")))

    with pytest.raises(StorageError) as exc_info:
        await make_service(session).add_currency("JPY", "Japanese Yen", 140)

    assert exc_info.value.message == "Failed to add currency"
    assert isinstance(exc_info.value.__cause__, OperationalError)
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_currency_maps_unique_violation_to_duplicate_code():
    session = _mock_session(
        _scalar_result(SimpleNamespace(id=1)),
        IntegrityError("INSERT", {}, UniqueViolation("duplicate key value")),
    )

    with pytest.raises(DuplicateCodeError) as exc_info:
        await make_service(session).add_currency("THB", "Thai Baht", 35)

    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "Currency code already exists"
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_add_currency_other_integrity_errors_are_storage_errors():
    session = _mock_session(
        _scalar_result(SimpleNamespace(id=1)),
        IntegrityError("INSERT", {}, NotNullViolation("null value")),
    )

    with pytest.raises(StorageError):
        await make_service(session).add_currency("THB", "Thai Baht", 35)

    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_add_currency_without_base_currency_fails_and_rolls_back():
    session = _mock_session(_scalar_result(None))

    with pytest.raises(StorageError) as exc_info:
        await make_service(session).add_currency("THB", "Thai Baht", 35)

    assert exc_info.value.message == "Base currency USD is not configured"
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_currency_rolls_back_on_storage_error():
    session = _mock_session(OperationalError("SELECT", {}, Exception("gone")))

    with pytest.raises(StorageError) as exc_info:
        await make_service(session).update_currency(1, "THB", "Thai Baht", 40)

    assert exc_info.value.message == "Failed to update currency"
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_list_all_currencies_wraps_storage_errors():
    session = _mock_session(OperationalError("SELECT", {}, Exception("DB failure")))

    with pytest.raises(StorageError) as exc_info:
        await make_service(session).list_all_currencies()

    assert exc_info.value.message == "Failed to fetch currencies"


def test_is_unique_violation_recognizes_sqlite_messages():
    exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: currencies.code"))
    assert is_unique_violation(exc)
    assert not is_unique_violation(IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed")))
